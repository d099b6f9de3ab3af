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
"""A cooperative cancellation signal shared by every step of a certificate acquisition."""
import threading

from . import errors


class CancellationToken:
    """
    A thread-safe cancellation flag. The host may call `cancel()` from any thread; the acquisition checks the flag
    before each round trip to the ACME server and at the top of each authorization poll.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Requests cancellation of every operation sharing this token."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        """Whether cancellation has been requested."""
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """
        Raises:
            simple_acme_http.errors.OperationCancelled: When cancellation has been requested.
        """
        if self._event.is_set():
            raise errors.OperationCancelled("The certificate acquisition was cancelled.")

