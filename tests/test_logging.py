import io
import logging
import unittest

from waypoint_deployer.utils.logging import MASK, SecretMaskingFilter, mask, mask_secret


class SecretMaskingTests(unittest.TestCase):
    def test_registered_secret_is_masked_in_records(self) -> None:
        mask_secret("s3cr3t-value")
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.addFilter(SecretMaskingFilter())
        logger = logging.getLogger("waypoint_deployer.tests.masking")
        logger.addHandler(handler)
        logger.propagate = False
        try:
            logger.warning("token is %s", "s3cr3t-value")
        finally:
            logger.removeHandler(handler)

        self.assertEqual(stream.getvalue().strip(), f"token is {MASK}")

    def test_mask_text(self) -> None:
        mask_secret("another-secret")
        self.assertEqual(mask("-server-auth-token another-secret"), f"-server-auth-token {MASK}")

    def test_empty_values_are_ignored(self) -> None:
        mask_secret("")
        mask_secret(None)
        self.assertEqual(mask("plain text"), "plain text")


if __name__ == "__main__":
    unittest.main()
