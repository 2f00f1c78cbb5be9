"""Unit tests for the dashboard entry module."""

import concurrent.futures
import io
import unittest
import unittest.mock
from unittest.mock import MagicMock, patch

from rich.console import Console

from trendpulse import dashboard
from trendpulse.platform.email_share import EmailShareTarget


class TestConfig(unittest.TestCase):
    @patch(
        "builtins.open",
        new_callable=unittest.mock.mock_open,
        read_data='{"default_topic": "Robotics"}',
    )
    def test_load_config_mock(self, _mock_file):
        config = dashboard.load_config("dummy_config.json")
        self.assertEqual(config["default_topic"], "Robotics")

    @patch("builtins.open", side_effect=FileNotFoundError)
    def test_load_config_missing(self, _mock_file):
        self.assertEqual(dashboard.load_config("missing.json"), {})

    def test_share_target_requires_credentials(self):
        with patch.object(dashboard, "EMAIL_SENDER", None):
            self.assertIsNone(dashboard.build_share_target())

        with patch.object(dashboard, "EMAIL_SENDER", "me@example.com"), patch.object(
            dashboard, "EMAIL_PASSWORD", "secret"
        ), patch.object(dashboard, "EMAIL_RECIPIENT", "you@example.com"):
            target = dashboard.build_share_target()
        self.assertIsInstance(target, EmailShareTarget)
        self.assertEqual(target.recipient, "you@example.com")

    @patch("trendpulse.dashboard.configure_logging")
    def test_main_requires_api_key(self, _mock_logging):
        with patch.object(dashboard, "GEMINI_API_KEY", None):
            with self.assertRaises(SystemExit) as ctx:
                dashboard.main()
        self.assertEqual(ctx.exception.code, 1)

    @patch("trendpulse.dashboard.GeminiGateway")
    @patch("trendpulse.dashboard.create_topic_storage")
    def test_build_controller(self, mock_storage, mock_gateway):
        mock_storage.return_value.load.return_value = ["AI"]

        with patch.object(dashboard, "GCP_PROJECT_ID", None):
            controller = dashboard.build_controller("fake_key")

        mock_gateway.assert_called_once()
        self.assertEqual(mock_gateway.call_args[0][0], "fake_key")
        self.assertEqual(controller.store.topic, dashboard.DEFAULT_TOPIC)
        self.assertEqual(controller.store.saved_topics, ["AI"])


class TestDashboardCommands(unittest.TestCase):
    def setUp(self):
        self.controller = MagicMock()
        self.controller.item_id_at.side_effect = lambda n: f"item-{n - 1}-1"
        self.controller.store.saved_topics = ["AI", "SpaceX"]
        self.output = io.StringIO()
        renderer = MagicMock()
        renderer.render.return_value = "view"
        self.executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        self.addCleanup(self.executor.shutdown)
        self.dashboard = dashboard.Dashboard(
            self.controller,
            console=Console(file=self.output, width=100),
            renderer=renderer,
            executor=self.executor,
        )

    def test_quit(self):
        self.assertFalse(self.dashboard.handle("q"))

    def test_free_text_submits_query(self):
        self.assertTrue(self.dashboard.handle("Quantum Computing"))
        self.controller.submit_query.assert_called_once_with("Quantum Computing")

    def test_search_command(self):
        self.dashboard.handle("search Nvidia earnings")
        self.controller.submit_query.assert_called_once_with("Nvidia earnings")

    def test_item_commands_resolve_positions(self):
        self.dashboard.handle("t 2")
        self.dashboard.handle("s 1")
        self.dashboard.handle("f 3")
        self.dashboard.handle("o 1")

        self.controller.translate_item.assert_called_once_with("item-1-1")
        self.controller.share_item.assert_called_once_with("item-0-1")
        self.controller.find_similar.assert_called_once_with("item-2-1")
        self.controller.open_item.assert_called_once_with("item-0-1")

    def test_unknown_item_reports(self):
        self.controller.item_id_at.side_effect = KeyError(9)

        self.assertTrue(self.dashboard.handle("t 9"))

        self.controller.translate_item.assert_not_called()
        self.assertIn("No item", self.output.getvalue())

    def test_non_numeric_item_reports(self):
        self.assertTrue(self.dashboard.handle("t abc"))
        self.controller.translate_item.assert_not_called()

    def test_topic_commands(self):
        self.dashboard.handle("save")
        self.dashboard.handle("go 2")
        self.dashboard.handle("rm 1")
        self.dashboard.handle("rm Web3")

        self.controller.save_current_topic.assert_called_once()
        self.controller.select_topic.assert_called_once_with("SpaceX")
        self.assertEqual(
            [c.args for c in self.controller.remove_topic.call_args_list],
            [("AI",), ("Web3",)],
        )

    def test_tab_and_brief_commands(self):
        self.controller.set_tab.return_value = True
        self.dashboard.handle("tab youtube")
        self.dashboard.handle("tb")
        self.dashboard.handle("r")

        self.controller.set_tab.assert_called_once_with("youtube")
        self.controller.translate_synthesis.assert_called_once()
        self.controller.refresh.assert_called_once()

    def test_background_failure_is_logged(self):
        self.controller.refresh.side_effect = RuntimeError("boom")

        with self.assertLogs("trendpulse.dashboard", level="ERROR"):
            self.assertTrue(self.dashboard.handle("r"))

    def test_state_changes_redraw_the_view(self):
        self.assertEqual(self.controller.on_change, self.dashboard.render)

        self.controller.on_change()

        self.assertIn("view", self.output.getvalue())


if __name__ == "__main__":
    unittest.main()
