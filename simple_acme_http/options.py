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
"""Configuration options for certificate acquisition."""
import os

import validators

from . import errors
from . import tools

# Constants and Variables
LETS_ENCRYPT_DIRECTORY = "https://acme-v02.api.letsencrypt.org/directory"
LETS_ENCRYPT_STAGING_DIRECTORY = "https://acme-staging-v02.api.letsencrypt.org/directory"
ENVIRONMENT_VARIABLE = "SIMPLE_ACME_HTTP_ENV"
USER_AGENT = "simple_acme_http/1.0.0"


class Options:
    """
    Options recognized by the certificate acquisition engine. Each option is validated when it is assigned.
    """
    # pylint: disable=too-many-instance-attributes

    def __init__(
            self,
            domains: list = None,
            email=None,
            use_staging_server: bool = None,
            accept_terms_of_service: bool = False,
            key_type: str = 'ec256',
            directory: str = None,
            pfx_password: str = None,
            verify_ssl: bool = True,
            user_agent: str = USER_AGENT
    ):
        """
        Args:
            domains (list): The domain names to request a certificate for. The first is the certificate common name.
            email (str | list): One or more email addresses bound to the ACME account registration.
            use_staging_server (bool): Use the Let's Encrypt staging server. When left unset, the staging server is
                used only if the `SIMPLE_ACME_HTTP_ENV` environment variable is `development`.
            accept_terms_of_service (bool): Agree to the ACME server's terms of service without asking for consent.
            key_type (str): The certificate private key type. Options are: [`ec256`, `ec384`, `rsa2048`, `rsa4096`]
            directory (str): An explicit ACME directory URL. Takes precedence over `use_staging_server`.
            pfx_password (str): The password protecting the issued PKCS#12 container. Leave empty for no password.
            verify_ssl (bool): Verify the SSL certificate of the ACME server when making requests.
            user_agent (str): The User-Agent sent to the ACME server.

        Examples:
            >>> options = simple_acme_http.Options(
            ...     domains=["example.com", "www.example.com"],
            ...     email="admin@example.com",
            ...     accept_terms_of_service=True,
            ...     key_type="rsa2048"
            ... )
        """
        self._domains = []
        self._emails = []
        self._key_type = 'ec256'
        self._directory = None
        self.use_staging_server = use_staging_server
        self.accept_terms_of_service = accept_terms_of_service
        self.pfx_password = pfx_password or ''
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent

        # Run assignments through their validating setters
        if domains is not None:
            self.domains = domains
        if email is not None:
            self.email = email
        self.key_type = key_type
        if directory is not None:
            self.directory = directory

    @property
    def domains(self) -> list:
        """
        Getter for the `domains` property. This checks that domains are already set whenever it's referenced.

        Raises:
             simple_acme_http.errors.InvalidDomain: When no `domains` have been set.
        """
        if not self._domains:
            msg = 'No domains found. You must set the domains value first.'
            raise errors.InvalidDomain(msg)

        return self._domains

    @domains.setter
    def domains(self, value) -> None:
        """
        Setter for the `domains` property. This checks that the assigned domains value is a non-empty list of valid
        FQDNs.

        Raises:
            simple_acme_http.errors.InvalidDomain: When one or more domains are invalid.
        """
        if not isinstance(value, list) or not value:
            raise errors.InvalidDomain("Domains must be a non-empty 'list'.")

        # Ensure each domain within the list is an RFC2181 compliant hostname
        for domain in value:
            if not isinstance(domain, str) or not validators.domain(domain):
                msg = f"Invalid domain name '{domain}'. Domain name must adhere to RFC2181."
                raise errors.InvalidDomain(msg)

        self._domains = list(value)

    @property
    def common_name(self) -> str:
        """The certificate common name, which is always the first domain."""
        return self.domains[0]

    @property
    def email(self) -> list:
        """
        Getter for the `email` property.

        Returns:
            list: Every email address bound to the account registration.

        Raises:
            simple_acme_http.errors.InvalidEmail: When `email` is not set.
        """
        if not self._emails:
            msg = 'No account email found. You must set the email value first.'
            raise errors.InvalidEmail(msg)

        return self._emails

    @email.setter
    def email(self, value) -> None:
        """
        Setter for the `email` property. Accepts a single address or a list of addresses.

        Raises:
            simple_acme_http.errors.InvalidEmail: When any value is not a valid email address
        """
        values = [value] if isinstance(value, str) else value
        if not isinstance(values, (list, tuple)) or not values:
            raise errors.InvalidEmail(f"Value '{value}' is not a valid email address.")

        for address in values:
            if not isinstance(address, str) or not validators.email(address):
                raise errors.InvalidEmail(f"Value '{address}' is not a valid email address.")

        self._emails = list(values)

    @property
    def key_type(self) -> str:
        """The private key type used for issued certificates."""
        return self._key_type

    @key_type.setter
    def key_type(self, value: str) -> None:
        """
        Raises:
            simple_acme_http.errors.InvalidKeyType: When `value` is not a supported key type.
        """
        if value not in tools.KEY_TYPES:
            msg = f"Invalid private key type '{value}'. Options {tools.KEY_TYPES}"
            raise errors.InvalidKeyType(msg)

        self._key_type = value

    @property
    def directory(self) -> str:
        """
        The ACME directory URL to interact with. An explicit directory wins; otherwise the staging server is chosen
        when `use_staging_server` is set, or, when it was never set, when running in a development environment.
        """
        if self._directory:
            return self._directory

        use_staging = self.use_staging_server
        if use_staging is None:
            use_staging = os.environ.get(ENVIRONMENT_VARIABLE, '').lower() == 'development'

        return LETS_ENCRYPT_STAGING_DIRECTORY if use_staging else LETS_ENCRYPT_DIRECTORY

    @directory.setter
    def directory(self, value: str) -> None:
        """
        Raises:
            simple_acme_http.errors.InvalidDirectory: When `value` is not a URL.
        """
        if not isinstance(value, str) or not validators.url(value, simple_host=True):
            raise errors.InvalidDirectory(f"Value '{value}' is not a valid ACME directory URL.")

        self._directory = value
