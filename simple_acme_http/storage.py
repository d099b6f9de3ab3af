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
File system persistence. Certificates are stored as `.pfx` files and the account as a JSON file. Every file is
written to a temporary file in its target directory first and then moved into place, so readers never observe a
partially written file.
"""
import asyncio
import base64
import json
import os
import pathlib
import tempfile

from . import errors
from . import tools
from .accounts import Account, AccountRepository
from .certificates import Certificate, CertificateRepository

ACCOUNT_FILE = 'account.json'


def write_atomic(path: pathlib.Path, data: bytes) -> None:
    """Writes `data` to `path` through a temporary file and an atomic rename."""
    descriptor, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(descriptor, 'wb') as tmp_file:
            tmp_file.write(data)
        os.replace(tmp_path, str(path))
    except BaseException:
        pathlib.Path(tmp_path).unlink(missing_ok=True)
        raise


class FileSystemRepository(AccountRepository, CertificateRepository):
    """Stores the ACME account and issued certificates below one directory."""

    def __init__(self, directory: str, pfx_password: str = None) -> None:
        """
        Args:
            directory (str): The directory to persist data to. `accounts` and `certificates` subdirectories are
                created inside it.
            pfx_password (str): When set, certificates are re-exported with this password before being saved.
                Otherwise, the container is saved as issued.

        Raises:
            simple_acme_http.errors.InvalidPath: When `directory` does not exist.
        """
        base_path = pathlib.Path(directory).absolute()
        if not base_path.is_dir():
            raise errors.InvalidPath(f"Directory at '{directory}' does not exist.")

        self.pfx_password = pfx_password
        self.account_dir = base_path.joinpath('accounts')
        self.certificate_dir = base_path.joinpath('certificates')
        self.account_dir.mkdir(exist_ok=True)
        self.certificate_dir.mkdir(exist_ok=True)

    @property
    def account_path(self) -> pathlib.Path:
        """The path of the persisted account file."""
        return self.account_dir.joinpath(ACCOUNT_FILE)

    async def get_account(self):
        return await asyncio.to_thread(self._read_account)

    async def save_account(self, account: Account) -> None:
        await asyncio.to_thread(self._write_account, account)

    async def save(self, certificate: Certificate) -> None:
        await asyncio.to_thread(self._write_certificate, certificate)

    def certificate_path(self, certificate: Certificate) -> pathlib.Path:
        """The path a certificate is saved to, named after its thumbprint."""
        return self.certificate_dir.joinpath(f"{certificate.thumbprint}.pfx")

    def _read_account(self):
        if not self.account_path.exists():
            return None

        with open(self.account_path, 'r', encoding='utf-8') as account_file:
            acct_data = json.load(account_file)

        return Account(
            email_addresses=tuple(acct_data.get('email_addresses', [])),
            key_material=base64.b64decode(acct_data['key_material']),
            directory_uri=acct_data.get('directory_uri')
        )

    def _write_account(self, account: Account) -> None:
        acct_data = {
            'email_addresses': list(account.email_addresses),
            'key_material': base64.b64encode(account.key_material).decode(),
            'directory_uri': account.directory_uri
        }
        write_atomic(self.account_path, json.dumps(acct_data).encode())

    def _write_certificate(self, certificate: Certificate) -> None:
        pfx = certificate.pfx
        if self.pfx_password:
            pfx = tools.export_pfx(
                certificate.private_key_pem,
                certificate.certificate,
                certificate.chain,
                certificate.friendly_name,
                self.pfx_password
            )
        write_atomic(self.certificate_path(certificate), pfx)
