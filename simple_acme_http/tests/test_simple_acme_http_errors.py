# Copyright 2025 Jared Hendrickson
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Test error functionality with the simple_acme_http package."""
import os
import unittest
from unittest import mock

import simple_acme_http
from simple_acme_http import options as options_module
from simple_acme_http.tests import TEST_DIRECTORY, TEST_DOMAINS, TEST_EMAIL


class TestSimpleAcmeHttpErrors(unittest.TestCase):
    """Checks to ensure exception classes used by simple_acme_http are raised when expected."""

    def test_domain_validation(self):
        """Checks that validation of the domains is performed."""
        # Create new options for this test
        options = simple_acme_http.Options()

        # Ensure domains validation fails if domains attribute is empty
        with self.assertRaises(simple_acme_http.errors.InvalidDomain):
            return options.domains

        # Ensure domains validation fails if domains are not a list, or an empty one
        with self.assertRaises(simple_acme_http.errors.InvalidDomain):
            options.domains = "Not a list"
        with self.assertRaises(simple_acme_http.errors.InvalidDomain):
            options.domains = []

        # Ensure every value must be an FQDN, wildcards included
        with self.assertRaises(simple_acme_http.errors.InvalidDomain):
            options.domains = ["example.com", "INVALID!!!"]
        with self.assertRaises(simple_acme_http.errors.InvalidDomain):
            options.domains = ["*.example.com"]

    def test_common_name(self):
        """Checks the first domain is the common name."""
        options = simple_acme_http.Options(domains=list(reversed(TEST_DOMAINS)))
        self.assertEqual(options.common_name, "www.example.com")

    def test_email_validation(self):
        """Checks that validation of the account email is performed."""
        # Create new options for this test
        options = simple_acme_http.Options()

        # Ensure email raises an error when it is referenced before a value is assigned
        with self.assertRaises(simple_acme_http.errors.InvalidEmail):
            return options.email

        # Ensure email validation fails if email is set to a non-email address value
        with self.assertRaises(simple_acme_http.errors.InvalidEmail):
            options.email = "Not a valid email address!"
        with self.assertRaises(simple_acme_http.errors.InvalidEmail):
            options.email = [TEST_EMAIL, "Not a valid email address!"]

        # Ensure a single address is normalized to a list
        options.email = TEST_EMAIL
        self.assertEqual(options.email, [TEST_EMAIL])

    def test_key_type_validation(self):
        """Checks that only supported private key types are accepted."""
        with self.assertRaises(simple_acme_http.errors.InvalidKeyType):
            simple_acme_http.Options(key_type="dsa1024")

        with self.assertRaises(simple_acme_http.errors.InvalidKeyType):
            simple_acme_http.tools.generate_private_key(key_type="dsa1024")

    def test_directory_validation(self):
        """Checks that the ACME directory must be a URL."""
        with self.assertRaises(simple_acme_http.errors.InvalidDirectory):
            simple_acme_http.Options(directory="Not a URL")

        options = simple_acme_http.Options(directory=TEST_DIRECTORY, use_staging_server=True)
        self.assertEqual(options.directory, TEST_DIRECTORY)

    def test_staging_server_selection(self):
        """Checks the staging server is chosen explicitly or by running in a development environment."""
        self.assertEqual(
            simple_acme_http.Options(use_staging_server=True).directory,
            options_module.LETS_ENCRYPT_STAGING_DIRECTORY
        )

        with mock.patch.dict(os.environ, {options_module.ENVIRONMENT_VARIABLE: "Development"}):
            self.assertEqual(simple_acme_http.Options().directory, options_module.LETS_ENCRYPT_STAGING_DIRECTORY)
            self.assertEqual(
                simple_acme_http.Options(use_staging_server=False).directory,
                options_module.LETS_ENCRYPT_DIRECTORY
            )

        with mock.patch.dict(os.environ):
            os.environ.pop(options_module.ENVIRONMENT_VARIABLE, None)
            self.assertEqual(simple_acme_http.Options().directory, options_module.LETS_ENCRYPT_DIRECTORY)

    def test_pfx_password_default(self):
        """Checks a missing PKCS#12 password means an empty one."""
        self.assertEqual(simple_acme_http.Options().pfx_password, '')

    def test_missing_directory(self):
        """Checks file system storage refuses a directory that does not exist."""
        with self.assertRaises(simple_acme_http.errors.InvalidPath):
            simple_acme_http.FileSystemRepository("/INVALID/DIRECTORY/DOES/NOT/EXIST")

    def test_error_hierarchy(self):
        """Checks configuration errors share a base class and every error carries its message."""
        for error_class in (
                simple_acme_http.errors.InvalidDomain,
                simple_acme_http.errors.InvalidEmail,
                simple_acme_http.errors.InvalidKeyType,
                simple_acme_http.errors.InvalidDirectory,
                simple_acme_http.errors.ChallengeUnavailable,
                simple_acme_http.errors.TermsOfServiceDeclined
        ):
            self.assertTrue(issubclass(error_class, simple_acme_http.errors.ConfigurationError))

        self.assertTrue(issubclass(simple_acme_http.errors.UnexpectedStatus, simple_acme_http.errors.ValidationFailed))
        self.assertFalse(issubclass(simple_acme_http.errors.ACMETimeout, simple_acme_http.errors.ValidationFailed))

        error = simple_acme_http.errors.ValidationFailed(
            "test_validation_failed", domain=TEST_DOMAINS[0], status="invalid", reason="unknown"
        )
        self.assertEqual(error.message, "test_validation_failed")
        self.assertEqual(str(error), "test_validation_failed")
        self.assertEqual(error.domain, TEST_DOMAINS[0])

    def test_acme_timeout(self):
        """Tests that acme timeout error can be raised."""
        with self.assertRaises(simple_acme_http.errors.ACMETimeout):
            raise simple_acme_http.errors.ACMETimeout("test_acme_timeout")

    def test_cancellation_token(self):
        """Checks a token raises only once cancelled."""
        cancellation = simple_acme_http.CancellationToken()
        cancellation.raise_if_cancelled()
        self.assertFalse(cancellation.cancelled)

        cancellation.cancel()
        self.assertTrue(cancellation.cancelled)
        with self.assertRaises(simple_acme_http.errors.OperationCancelled):
            cancellation.raise_if_cancelled()

    def test_email_in_options(self):
        """Checks several account addresses are kept in order."""
        options = simple_acme_http.Options(email=[TEST_EMAIL, "ops@example.com"])
        self.assertEqual(options.email, [TEST_EMAIL, "ops@example.com"])


if __name__ == "__main__":
    unittest.main()
