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

import http.server
import threading

import simple_acme_http

# Where issued certificates and the ACME account are persisted
repository = simple_acme_http.FileSystemRepository("/var/lib/simple_acme_http")

# Challenge responses registered here are served by the HTTP responder below
store = simple_acme_http.InMemoryChallengeResponseStore()


class ChallengeHandler(http.server.BaseHTTPRequestHandler):
    """Answers GET /.well-known/acme-challenge/{token} with the registered key authorization."""

    def do_GET(self):
        body = store.response_for_path(self.path)
        if body is None:
            self.send_error(404)
            return

        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.end_headers()
        self.wfile.write(body.encode())


# The ACME server validates over plain HTTP on port 80 of every requested domain
server = http.server.ThreadingHTTPServer(("", 80), ChallengeHandler)
threading.Thread(target=server.serve_forever, daemon=True).start()

# Create a client object to interface with the ACME server. In this example, the Let's Encrypt staging environment.
client = simple_acme_http.ACMEClient(
    options=simple_acme_http.Options(
        domains=["test.example.com"],
        email="user@example.com",
        use_staging_server=True,
        accept_terms_of_service=True,
    ),
    challenge_store=store,
    account_repository=repository,
    certificate_repository=repository,
)

# Register or reuse the account, prove control of every domain, then save the issued certificate
try:
    certificate = client.request_certificate()
except simple_acme_http.errors.SimpleAcmeHttpError as error:
    print(f"Failed to issue certificate: {error}")
    exit(1)
finally:
    server.shutdown()

print(f"{certificate.common_name} expires {certificate.not_valid_after}")
print(repository.certificate_path(certificate))
