"""Unit tests for the dashboard controller."""

import unittest
from unittest.mock import MagicMock

from trendpulse.handlers import FETCH_ERROR_MESSAGE, DashboardController
from trendpulse.models import SourceType
from trendpulse.platform.base import ShareError
from trendpulse.services.gemini import GatewayDecodeError, GatewayError
from trendpulse.store import ViewStateStore

ITEM = {
    "id": "item-0-1690000000000",
    "title": "Nvidia unveils new chip for data centers",
    "summary": "Y",
    "source": "A",
    "url": "https://a.example/1",
    "type": SourceType.NEWS,
}
VIDEO = {
    "id": "item-1-1690000000000",
    "title": "Hands-on with the chip",
    "summary": "Z",
    "source": "B",
    "url": "https://youtube.example/watch",
    "type": SourceType.YOUTUBE,
}


def topic_news(brief="Brief.", items=None, grounding=None):
    return {
        "brief": brief,
        "news_items": list(items if items is not None else [ITEM]),
        "grounding_sources": list(grounding or []),
    }


class ControllerTestCase(unittest.TestCase):
    def setUp(self):
        storage = MagicMock()
        storage.load.return_value = ["AI", "SpaceX"]
        self.storage = storage
        self.store = ViewStateStore(storage, initial_topic="Artificial Intelligence")
        self.gateway = MagicMock()
        self.gateway.fetch_news_for_topic.return_value = topic_news()
        self.clipboard = MagicMock()
        self.opener = MagicMock()
        self.timer_factory = MagicMock()
        self.controller = DashboardController(
            self.store,
            self.gateway,
            clipboard=self.clipboard,
            opener=self.opener,
            timer_factory=self.timer_factory,
        )

    def load(self, items=None):
        self.gateway.fetch_news_for_topic.return_value = topic_news(items=items)
        self.assertTrue(self.controller.refresh())


class TestRefresh(ControllerTestCase):
    def test_submit_quantum_computing(self):
        self.gateway.fetch_news_for_topic.return_value = topic_news(brief="Qubits.")

        self.assertTrue(self.controller.submit_query("  Quantum Computing "))

        self.gateway.fetch_news_for_topic.assert_called_once_with("Quantum Computing")
        news = self.store.snapshot()["news"]
        self.assertEqual(news["topic"], "Quantum Computing")
        self.assertEqual(news["brief"], "Qubits.")
        self.assertEqual(news["items"], [ITEM])
        self.assertFalse(news["loading"])
        self.assertIsNone(news["error"])

    def test_blank_submit_is_noop(self):
        self.assertFalse(self.controller.submit_query("   "))
        self.gateway.fetch_news_for_topic.assert_not_called()

    def test_refresh_defaults_to_current_topic(self):
        self.controller.refresh()
        self.gateway.fetch_news_for_topic.assert_called_once_with(
            "Artificial Intelligence"
        )

    def test_failure_sets_generic_message(self):
        self.load()
        self.gateway.fetch_news_for_topic.side_effect = GatewayError("timeout")

        self.assertFalse(self.controller.refresh("Quantum"))

        news = self.store.snapshot()["news"]
        self.assertFalse(news["loading"])
        self.assertEqual(news["error"], FETCH_ERROR_MESSAGE)
        self.assertEqual(news["items"], [ITEM])

    def test_decode_failure_takes_same_path(self):
        self.gateway.fetch_news_for_topic.side_effect = GatewayDecodeError("bad")

        self.controller.refresh()

        self.assertEqual(self.store.snapshot()["news"]["error"], FETCH_ERROR_MESSAGE)

    def test_superseded_refresh_is_not_applied(self):
        def slow_fetch(topic):
            # A newer refresh starts while this one is still in flight.
            self.store.begin_refresh("Newer")
            return topic_news(brief=f"about {topic}")

        self.gateway.fetch_news_for_topic.side_effect = slow_fetch

        self.assertFalse(self.controller.refresh("Older"))

        news = self.store.snapshot()["news"]
        self.assertTrue(news["loading"])
        self.assertNotEqual(news["topic"], "Older")
        self.assertEqual(news["brief"], "")

    def test_find_similar(self):
        self.controller.submit_query("AI")
        self.gateway.fetch_news_for_topic.reset_mock()

        self.controller.find_similar(ITEM["id"])

        self.gateway.fetch_news_for_topic.assert_called_once_with(
            "AI focus on Nvidia unveils new chip for"
        )
        self.assertEqual(
            self.store.topic, "AI focus on Nvidia unveils new chip for"
        )

    def test_select_saved_topic(self):
        self.controller.select_topic("SpaceX")
        self.assertEqual(self.store.topic, "SpaceX")


class TestTranslateItem(ControllerTestCase):
    def setUp(self):
        super().setUp()
        self.load()
        self.gateway.translate_news_item.return_value = {
            "title": "T-ไทย",
            "summary": "S-ไทย",
        }

    def test_three_state_cycle_fetches_once(self):
        item_id = ITEM["id"]

        self.assertTrue(self.controller.translate_item(item_id))
        self.assertEqual(
            self.store.translation(item_id),
            {
                "title": "T-ไทย",
                "summary": "S-ไทย",
                "loading": False,
                "translated": True,
                "fetched": True,
            },
        )

        self.controller.translate_item(item_id)
        entry = self.store.translation(item_id)
        self.assertFalse(entry["translated"])
        self.assertEqual(entry["title"], "T-ไทย")

        self.controller.translate_item(item_id)
        self.assertTrue(self.store.translation(item_id)["translated"])

        self.gateway.translate_news_item.assert_called_once_with(
            ITEM["title"], ITEM["summary"]
        )

    def test_empty_translation_cycles_without_refetch(self):
        self.gateway.translate_news_item.return_value = {"title": "", "summary": ""}
        item_id = ITEM["id"]

        self.assertTrue(self.controller.translate_item(item_id))
        self.assertTrue(self.store.translation(item_id)["translated"])
        self.assertTrue(self.controller.translate_item(item_id))
        self.assertFalse(self.store.translation(item_id)["translated"])
        self.assertTrue(self.controller.translate_item(item_id))
        self.assertTrue(self.store.translation(item_id)["translated"])

        self.assertEqual(self.gateway.translate_news_item.call_count, 1)

    def test_failure_leaves_item_untranslated(self):
        self.gateway.translate_news_item.side_effect = GatewayError("quota")

        self.assertFalse(self.controller.translate_item(ITEM["id"]))

        entry = self.store.translation(ITEM["id"])
        self.assertFalse(entry["loading"])
        self.assertFalse(entry["translated"])
        self.assertIsNone(self.store.snapshot()["news"]["error"])

    def test_retry_after_failure_fetches_again(self):
        self.gateway.translate_news_item.side_effect = [
            GatewayError("quota"),
            {"title": "T", "summary": "S"},
        ]

        self.controller.translate_item(ITEM["id"])
        self.assertTrue(self.controller.translate_item(ITEM["id"]))
        self.assertEqual(self.gateway.translate_news_item.call_count, 2)

    def test_ignored_while_loading(self):
        self.store.begin_translation(ITEM["id"])

        self.assertFalse(self.controller.translate_item(ITEM["id"]))
        self.gateway.translate_news_item.assert_not_called()

    def test_result_after_refresh_is_dropped(self):
        def translate_then_refresh(title, summary):
            self.store.begin_refresh("AI")
            return {"title": "late", "summary": "late"}

        self.gateway.translate_news_item.side_effect = translate_then_refresh

        self.assertFalse(self.controller.translate_item(ITEM["id"]))
        self.assertEqual(self.store.snapshot()["translations"], {})

    def test_unknown_item(self):
        with self.assertRaises(KeyError):
            self.controller.translate_item("item-99-0")


class TestTranslateSynthesis(ControllerTestCase):
    def setUp(self):
        super().setUp()
        self.load()
        self.gateway.translate_large_text.return_value = "บทสรุป"

    def test_three_state_cycle_fetches_once(self):
        self.assertTrue(self.controller.translate_synthesis())
        self.assertEqual(
            self.store.synthesis_translation(),
            {"text": "บทสรุป", "loading": False, "translated": True, "fetched": True},
        )

        self.controller.translate_synthesis()
        self.assertFalse(self.store.synthesis_translation()["translated"])
        self.controller.translate_synthesis()
        self.assertTrue(self.store.synthesis_translation()["translated"])

        self.gateway.translate_large_text.assert_called_once_with("Brief.")

    def test_empty_translation_cycles_without_refetch(self):
        self.gateway.translate_large_text.return_value = ""

        self.assertTrue(self.controller.translate_synthesis())
        self.assertTrue(self.store.synthesis_translation()["translated"])
        self.assertTrue(self.controller.translate_synthesis())
        self.assertFalse(self.store.synthesis_translation()["translated"])
        self.assertTrue(self.controller.translate_synthesis())
        self.assertTrue(self.store.synthesis_translation()["translated"])

        self.assertEqual(self.gateway.translate_large_text.call_count, 1)

    def test_failure_is_silent(self):
        self.gateway.translate_large_text.side_effect = GatewayError("down")

        self.assertFalse(self.controller.translate_synthesis())
        self.assertEqual(
            self.store.synthesis_translation(),
            {"text": "", "loading": False, "translated": False, "fetched": False},
        )


class TestShare(ControllerTestCase):
    def setUp(self):
        super().setUp()
        self.controller.submit_query("AI")

    def test_without_share_target_copies_link(self):
        self.assertFalse(self.controller.share_item(ITEM["id"]))

        self.clipboard.copy.assert_called_once_with(ITEM["url"])
        self.assertEqual(self.store.snapshot()["copied_id"], ITEM["id"])
        delay, _ = self.timer_factory.call_args.args
        self.assertEqual(delay, 2.0)
        self.assertEqual(self.timer_factory.call_args.kwargs, {"args": (ITEM["id"],)})
        self.timer_factory.return_value.start.assert_called_once()

    def test_copied_acknowledgment_clears(self):
        self.controller.share_item(ITEM["id"])
        _, callback = self.timer_factory.call_args.args
        callback(*self.timer_factory.call_args.kwargs["args"])

        self.assertIsNone(self.store.snapshot()["copied_id"])

    def test_cleared_acknowledgment_notifies_view(self):
        seen = []
        self.controller.on_change = lambda: seen.append(
            self.store.snapshot()["copied_id"]
        )
        self.controller.share_item(ITEM["id"])
        self.assertEqual(seen, [])

        _, callback = self.timer_factory.call_args.args
        callback(*self.timer_factory.call_args.kwargs["args"])

        self.assertEqual(seen, [None])

    def test_successful_share(self):
        share_target = MagicMock()
        self.controller.share_target = share_target

        self.assertTrue(self.controller.share_item(ITEM["id"]))

        share_target.share.assert_called_once_with(
            {
                "title": ITEM["title"],
                "text": f"Check out this news about AI: {ITEM['title']}",
                "url": ITEM["url"],
            }
        )
        self.clipboard.copy.assert_not_called()

    def test_cancelled_share_falls_back_to_clipboard(self):
        share_target = MagicMock()
        share_target.share.side_effect = ShareError("cancelled")
        self.controller.share_target = share_target

        self.assertFalse(self.controller.share_item(ITEM["id"]))

        self.clipboard.copy.assert_called_once_with(ITEM["url"])
        self.assertEqual(self.store.snapshot()["copied_id"], ITEM["id"])

    def test_clipboard_failure_has_no_acknowledgment(self):
        self.clipboard.copy.side_effect = OSError("no tty")

        self.controller.share_item(ITEM["id"])

        self.assertIsNone(self.store.snapshot()["copied_id"])
        self.timer_factory.assert_not_called()


class TestTopicsAndNavigation(ControllerTestCase):
    def test_save_current_topic_is_idempotent(self):
        self.controller.submit_query("ai")

        self.assertFalse(self.controller.save_current_topic())
        self.assertEqual(self.store.saved_topics, ["AI", "SpaceX"])

    def test_save_and_remove(self):
        self.controller.submit_query("Robotics")

        self.assertTrue(self.controller.save_current_topic())
        self.assertEqual(self.store.saved_topics, ["Robotics", "AI", "SpaceX"])
        self.assertTrue(self.controller.remove_topic("Robotics"))
        self.assertFalse(self.controller.remove_topic("Robotics"))
        self.assertEqual(self.store.saved_topics, ["AI", "SpaceX"])

    def test_tabs_and_positions(self):
        self.load(items=[ITEM, VIDEO])

        self.assertEqual(self.controller.item_id_at(2), VIDEO["id"])
        self.assertTrue(self.controller.set_tab("youtube"))
        self.assertEqual(self.controller.visible_items(), [VIDEO])
        self.assertEqual(self.controller.item_id_at(1), VIDEO["id"])
        with self.assertRaises(KeyError):
            self.controller.item_id_at(2)
        self.assertFalse(self.controller.set_tab("podcasts"))

    def test_open_item(self):
        self.load()

        self.controller.open_item(ITEM["id"])

        self.opener.open.assert_called_once_with(ITEM["url"])


if __name__ == "__main__":
    unittest.main()
