import unittest
from unittest.mock import Mock

from waypoint_deployer.context import RepoCoordinates, RunContext
from waypoint_deployer.github import GitHubAPIError
from waypoint_deployer.labels import LABEL_PREFIX, build_labels, label_args


def make_context(workspace: str = "default") -> RunContext:
    return RunContext(
        workspace=workspace,
        operation="build",
        commit_sha="1111111",
        repo=RepoCoordinates("acme", "shop"),
        ref="refs/heads/feature/login",
        run_id="4242",
        tool_address="waypoint:9701",
        tool_token="secret",
        after_sha="2222222",
    )


class LabelTests(unittest.TestCase):
    def test_build_labels(self) -> None:
        client = Mock()
        client.get_commit.return_value = {"html_url": "https://github.com/acme/shop/commit/2222222"}

        labels = build_labels(make_context(), client)

        client.get_commit.assert_called_once_with("acme", "shop", "2222222")
        self.assertEqual(
            labels,
            (
                ("common/vcs-ref", "refs/heads/feature/login"),
                ("common/vcs-sha", "2222222"),
                ("common/vcs-url", "https://github.com/acme/shop/commit/2222222"),
                ("common/vcs-run-id", "4242"),
            ),
        )
        for key, _ in labels:
            self.assertTrue(key.startswith(f"{LABEL_PREFIX}/"))

    def test_lookup_failure_propagates(self) -> None:
        client = Mock()
        client.get_commit.side_effect = GitHubAPIError("GET", "/commits/2222222", "Not Found", 404)

        with self.assertRaises(GitHubAPIError):
            build_labels(make_context(), client)

    def test_commit_without_web_url_is_an_error(self) -> None:
        client = Mock()
        client.get_commit.return_value = {"sha": "2222222"}

        with self.assertRaises(GitHubAPIError) as caught:
            build_labels(make_context(), client)
        self.assertIn("html_url", str(caught.exception))

    def test_label_args_order(self) -> None:
        args = label_args("staging", (("common/a", "1"), ("common/b", "x=y")))

        self.assertEqual(
            args,
            ["-workspace", "staging", "-label", "common/a=1", "-label", "common/b=x=y"],
        )

    def test_label_args_always_include_workspace(self) -> None:
        self.assertEqual(label_args("default", ()), ["-workspace", "default"])

    def test_empty_workspace_falls_back_to_default(self) -> None:
        ctx = make_context(workspace="")
        self.assertEqual(ctx.workspace, "default")


if __name__ == "__main__":
    unittest.main()
