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
"""
Stores for HTTP-01 challenge responses. An HTTP responder owned by the host answers
`GET /.well-known/acme-challenge/{token}` with the key authorization registered here, verbatim.
"""
import abc
import threading

CHALLENGE_PATH_PREFIX = "/.well-known/acme-challenge/"


class ChallengeResponseStore(abc.ABC):
    """A registry mapping challenge tokens to the key authorization the ACME server expects to read back."""

    @abc.abstractmethod
    def add_challenge_response(self, token: str, key_authorization: str) -> None:
        """Registers (or replaces) the key authorization for a token."""

    @abc.abstractmethod
    def get_challenge_response(self, token: str):
        """Returns the key authorization registered for a token, or None."""


class InMemoryChallengeResponseStore(ChallengeResponseStore):
    """A thread-safe in-process challenge response store."""

    def __init__(self) -> None:
        self._responses = {}
        self._lock = threading.Lock()

    def add_challenge_response(self, token: str, key_authorization: str) -> None:
        with self._lock:
            self._responses[token] = key_authorization

    def get_challenge_response(self, token: str):
        with self._lock:
            return self._responses.get(token)

    def response_for_path(self, path: str):
        """
        Looks up the response body for a request path.

        Args:
            path (str): The HTTP request path, e.g. `/.well-known/acme-challenge/LoqXcYV8q5ONbJQxbmR7SCTNo3tiAXDfowyjxAjEuX0`

        Returns:
            str: The registered key authorization, or None when the path is not a known challenge.
        """
        if not path.startswith(CHALLENGE_PATH_PREFIX):
            return None

        token = path[len(CHALLENGE_PATH_PREFIX):]
        if not token or "/" in token:
            return None

        return self.get_challenge_response(token)

    def __len__(self) -> int:
        with self._lock:
            return len(self._responses)
