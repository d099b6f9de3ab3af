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
"""The issued certificate handed to the caller, and the storage contract for it."""
import abc

from cryptography import x509
from cryptography.x509.oid import NameOID

from . import tools


class Certificate:
    """
    An issued certificate packaged for transport. `pfx` holds the certificate, its chain and its private key in a
    PKCS#12 container protected with the configured password.
    """

    def __init__(self, fullchain_pem: bytes, private_key_pem: bytes, domains: list, pfx_password: str = '') -> None:
        """
        Args:
            fullchain_pem (bytes): The PEM encoded certificate followed by its intermediates.
            private_key_pem (bytes): The PEM encoded private key of the certificate.
            domains (list): The domain names the certificate was requested for.
            pfx_password (str): The password protecting the PKCS#12 container.
        """
        certificates = tools.load_fullchain(fullchain_pem)
        self.fullchain_pem = fullchain_pem
        self.private_key_pem = private_key_pem
        self.domains = list(domains)
        self.certificate = certificates[0]
        self.chain = certificates[1:]
        self.friendly_name = f"Let's Encrypt - {', '.join(self.domains)}"
        self.pfx = tools.export_pfx(private_key_pem, self.certificate, self.chain, self.friendly_name, pfx_password)

    @property
    def common_name(self) -> str:
        """The subject common name of the leaf certificate."""
        attributes = self.certificate.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
        return attributes[0].value if attributes else None

    @property
    def subject_alternative_names(self) -> list:
        """Every DNS name listed in the leaf certificate's subjectAltName."""
        try:
            extension = self.certificate.extensions.get_extension_for_class(x509.SubjectAlternativeName)
        except x509.ExtensionNotFound:
            return []
        return extension.value.get_values_for_type(x509.DNSName)

    @property
    def thumbprint(self) -> str:
        """The upper case SHA-1 fingerprint of the leaf certificate."""
        return tools.thumbprint(self.certificate)

    @property
    def not_valid_after(self):
        """When the leaf certificate expires."""
        return self.certificate.not_valid_after_utc


class CertificateRepository(abc.ABC):
    """Durable storage for issued certificates. Implementations must write atomically."""

    @abc.abstractmethod
    async def save(self, certificate: Certificate) -> None:
        """Persists `certificate`."""
