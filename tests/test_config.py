import tempfile
import unittest
from pathlib import Path

from waypoint_deployer.config import AppConfig, load_config


class ConfigTests(unittest.TestCase):
    def test_loads_default_config(self) -> None:
        config = load_config(env={})
        self.assertIsInstance(config, AppConfig)
        self.assertEqual(config.deploy.workspace, "default")
        self.assertEqual(config.deploy.propagation_delay, 30)
        self.assertEqual(config.waypoint.binary, "waypoint")
        self.assertTrue(config.waypoint.tls_skip_verify)

    def test_loads_custom_config(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            temp_file = Path(tmp) / "config.json"
            temp_file.write_text(
                """
{
  "waypoint": {"binary": "/opt/waypoint/bin/waypoint", "_note": "ignored"},
  "deploy": {"workspace": "staging", "propagation_delay": 5}
}
""".strip(),
                encoding="utf-8",
            )
            config = load_config(str(temp_file), env={})

        self.assertEqual(config.waypoint.binary, "/opt/waypoint/bin/waypoint")
        self.assertEqual(config.deploy.workspace, "staging")
        self.assertEqual(config.deploy.propagation_delay, 5)
        self.assertEqual(config.github.api_url, "https://api.github.com")

    def test_missing_explicit_config_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_config("does/not/exist.json", env={})

    def test_env_vars_override_file(self) -> None:
        env = {
            "INPUT_GITHUB_TOKEN": "ghs_input",
            "GITHUB_API_URL": "https://ghe.example.com/api/v3/",
            "WAYPOINT_SERVER_ADDR": "wp.example:9701",
            "INPUT_WAYPOINT_SERVER_ADDRESS": "ignored:9701",
            "INPUT_WAYPOINT_SERVER_TOKEN": "wp-token",
            "INPUT_WORKSPACE": "production",
            "INPUT_OPERATION": "deploy",
            "WAYPOINT_DEPLOYER_PROPAGATION_DELAY": "2.5",
            "WAYPOINT_UI_BASE_URL": "https://ui.example/",
            "WAYPOINT_PROJECT": "shop",
            "WAYPOINT_APP": "web",
        }
        config = load_config(env=env)

        self.assertEqual(config.github.token, "ghs_input")
        self.assertEqual(config.github.api_url, "https://ghe.example.com/api/v3")
        self.assertEqual(config.waypoint.server_address, "wp.example:9701")
        self.assertEqual(config.waypoint.server_token, "wp-token")
        self.assertEqual(config.deploy.workspace, "production")
        self.assertEqual(config.deploy.operation, "deploy")
        self.assertEqual(config.deploy.propagation_delay, 2.5)
        self.assertEqual(config.waypoint.ui_base_url, "https://ui.example")
        self.assertEqual(config.waypoint.project, "shop")
        self.assertEqual(config.waypoint.app, "web")

    def test_from_dict_defaults(self) -> None:
        config = AppConfig.from_dict({})
        self.assertIsNone(config.github.token)
        self.assertIsNone(config.deploy.operation)
        self.assertFalse(config.waypoint.create_context)


if __name__ == "__main__":
    unittest.main()
