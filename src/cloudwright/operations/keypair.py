from __future__ import annotations

import os
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from .base import Action, Prepared
from ..driver import Driver
from ..errors import LocalIOError, ParameterError
from ..params import Params
from ..types import CoercionKind, Setter

KEY_BITS = 4096


def generate_ssh_keypair(bits: int = KEY_BITS, comment: str = "") -> tuple[bytes, bytes]:
    """Return ``(public_openssh, private_pem)`` generated by ``ssh-keygen``."""
    with tempfile.TemporaryDirectory() as workdir:
        key_path = Path(workdir) / "key"
        cmd = [
            "ssh-keygen",
            "-q",
            "-t",
            "rsa",
            "-b",
            str(bits),
            "-m",
            "PEM",
            "-N",
            "",
            "-C",
            comment,
            "-f",
            str(key_path),
        ]
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except FileNotFoundError as exc:
            raise LocalIOError("generating key: ssh-keygen not found on PATH") from exc
        if proc.returncode != 0:
            raise LocalIOError(f"generating key: {proc.stderr.strip() or proc.stdout.strip()}")
        private = key_path.read_bytes()
        public = key_path.with_suffix(".pub").read_bytes()
    return public, private


def write_private_key(path: Path, material: bytes) -> None:
    """Create ``path`` readable by its owner only; never overwrite."""
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o400)
    except FileExistsError:
        raise LocalIOError(f"saving private key: file already exists at path: {path}") from None
    except OSError as exc:
        raise LocalIOError(f"saving private key: {exc}") from exc
    with os.fdopen(fd, "wb") as handle:
        handle.write(material)


class CreateKeyPairAction(Action):
    description = "create keypair"
    service = "ec2"

    def check(self, params: Params) -> None:
        self._private_key_path(params)

    def build(self, params: Params) -> Prepared:
        return self.prepare("ImportKeyPair", [Setter(params["name"], "KeyName", CoercionKind.STRING)])

    def run(self, params: Params) -> Optional[str]:
        name = params.require_str("name")
        key_path = self._private_key_path(params)
        call, request = self.build(params)

        self.logger.info("Generating locally a RSA %d bits keypair...", KEY_BITS)
        public, private = generate_ssh_keypair(KEY_BITS, comment=name)
        write_private_key(key_path, private)
        self.logger.info("%d RSA keypair generated locally and stored in '%s'", KEY_BITS, key_path)

        request.attach("PublicKeyMaterial", public)
        output = call.execute(request)
        key_name = output.get("KeyName")
        self.logger.info("create keypair '%s' done", key_name)
        return key_name

    @staticmethod
    def _private_key_path(params: Params) -> Path:
        name = params.require_str("name")
        if not name:
            raise ParameterError("saving private key: empty 'name' parameter")
        path = Driver.keys_dir() / f"{name}.pem"
        if path.exists():
            raise LocalIOError(f"saving private key: file already exists at path: {path}")
        return path
