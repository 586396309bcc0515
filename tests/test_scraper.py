import unittest

from waypoint_deployer.scraper import DEPLOY_URL_MARKER, extract_deploy_url

DEPLOY_OUTPUT = """
» Deploying...
✓ Running deploy v12
✓ Deployment successfully rolled out!

The deploy was successful! A Waypoint deployment URL is shown below.

   Release URL: https://shop.waypoint.run
Deployment URL: https://shop--v12.waypoint.run
"""


class ExtractDeployUrlTests(unittest.TestCase):
    def test_single_marker(self) -> None:
        self.assertEqual(extract_deploy_url(DEPLOY_OUTPUT), "https://shop--v12.waypoint.run")

    def test_windows_line_endings(self) -> None:
        output = "building\r\nDeployment URL: https://a.example\r\ndone\r\n"
        self.assertEqual(extract_deploy_url(output), "https://a.example")

    def test_marker_at_end_without_newline(self) -> None:
        self.assertEqual(extract_deploy_url("Deployment URL: https://a.example"), "https://a.example")

    def test_no_marker(self) -> None:
        self.assertIsNone(extract_deploy_url("Release URL: https://shop.waypoint.run\n"))

    def test_empty_output(self) -> None:
        self.assertIsNone(extract_deploy_url(""))

    def test_multiple_markers(self) -> None:
        output = f"{DEPLOY_URL_MARKER}https://a.example\n{DEPLOY_URL_MARKER}https://b.example\n"
        self.assertIsNone(extract_deploy_url(output))

    def test_marker_without_value(self) -> None:
        self.assertIsNone(extract_deploy_url("Deployment URL: \nnext line\n"))


if __name__ == "__main__":
    unittest.main()
