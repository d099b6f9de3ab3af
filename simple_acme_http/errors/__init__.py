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
"""Custom exception classes for simple_acme_http."""


class SimpleAcmeHttpError(Exception):
    """Base class for every error raised by simple_acme_http"""
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(SimpleAcmeHttpError):
    """Error occurs when the acquisition cannot proceed because of how it is configured. These are never retried."""


class InvalidDomain(ConfigurationError):
    """Error occurs when requests are made to the ACME server without valid domains"""


class InvalidEmail(ConfigurationError):
    """Error occurs when an account action was requested but no valid email value exists"""


class InvalidKeyType(ConfigurationError):
    """Error occurs when the requested private key type is unsupported"""


class InvalidDirectory(ConfigurationError):
    """Error occurs when the ACME directory URL is not a valid URL"""


class ChallengeUnavailable(ConfigurationError):
    """Error occurs when the requested ACME server does not offer the HTTP-01 challenge"""


class TermsOfServiceDeclined(ConfigurationError):
    """Error occurs when the ACME server's terms of service were not agreed to"""


class InvalidAccount(SimpleAcmeHttpError):
    """Error occurs when the ACME server refuses to register a new account"""


class ValidationFailed(SimpleAcmeHttpError):
    """Error occurs when the ACME server reports an authorization as invalid, revoked or expired"""
    def __init__(self, message: str, domain: str = None, status: str = None, reason: str = None) -> None:
        super().__init__(message)
        self.domain = domain
        self.status = status
        self.reason = reason


class UnexpectedStatus(ValidationFailed):
    """Error occurs when the ACME server responds with an authorization status this client does not understand"""


class ACMETimeout(SimpleAcmeHttpError):
    """Error occurs when the max time has been exceeded waiting for an ACME server event"""


class OperationCancelled(SimpleAcmeHttpError):
    """Error occurs when cancellation was requested while an acquisition was in flight"""


class IssuanceFailed(SimpleAcmeHttpError):
    """Error occurs when the ACME server refuses to finalize an order into a certificate"""


class InvalidPath(SimpleAcmeHttpError):
    """Error occurs when a requested file path does not exist or cannot be written"""
