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

import asyncio
import logging
import signal
import sys

import simple_acme_http

verbose = True if "--verbose" in sys.argv else False
logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)


async def main():
    # Serve this store from your own web server under /.well-known/acme-challenge/
    store = simple_acme_http.InMemoryChallengeResponseStore()
    repository = simple_acme_http.FileSystemRepository("/var/lib/simple_acme_http", pfx_password="changeit")
    options = simple_acme_http.Options(
        domains=["test.example.com", "test2.example.com"],
        email=["user@example.com", "ops@example.com"],
        directory="https://acme-staging-v02.api.letsencrypt.org/directory",
        key_type="rsa4096",
        pfx_password="changeit",
    )

    # Ask for consent on the console instead of accepting the terms of service automatically
    client = simple_acme_http.ACMEClient(
        options=options,
        challenge_store=store,
        account_repository=repository,
        consent_provider=simple_acme_http.console_consent,
    )

    # Stop the acquisition cleanly on Ctrl+C
    cancellation = simple_acme_http.CancellationToken()
    asyncio.get_running_loop().add_signal_handler(signal.SIGINT, cancellation.cancel)

    # Establish the account once, then issue two certificates with it
    account_context = await client.ensure_account(cancellation)
    for key_type in ("rsa4096", "ec384"):
        client.orchestrator.key_type = key_type
        certificate = await client.issue_certificate(account_context, cancellation)
        await repository.save(certificate)
        print(f"{key_type}: {certificate.thumbprint} -> {repository.certificate_path(certificate)}")


try:
    asyncio.run(main())
except simple_acme_http.errors.OperationCancelled:
    print("Cancelled.")
    exit(1)
except simple_acme_http.errors.ValidationFailed as error:
    print(f"Failed to validate {error.domain}: {error.reason or error.status}")
    exit(1)
