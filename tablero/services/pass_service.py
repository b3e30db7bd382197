"""
services/pass_service.py
------------------------

Builds signed Wallet loyalty passes (``.pkpass``).

A pass is a zip archive holding the model directory's ``pass.json`` and
images, a ``manifest.json`` with the SHA-1 digest of every file and a
detached PKCS#7 ``signature`` of the manifest.  The model directory and
the certificates live under ``settings.passkit_dir``::

    passkit/
        model.pass/pass.json, icon.png, logo.png, ...
        certs/wwdr.pem, pass_cert.pem, passkey.key
"""

from __future__ import annotations

import hashlib
import io
import json
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.serialization import pkcs7

from tablero.clients.store_client import StoreClient
from tablero.core.config import Settings, get_settings
from tablero.exceptions import PassError
from tablero.logging_config import log_call, logger
from tablero.schemas.passes import CardHolder

PASS_STYLES = ("storeCard", "generic", "coupon", "eventTicket", "boardingPass")
PKPASS_MEDIA_TYPE = "application/vnd.apple.pkpass"

# files generated per pass, never copied from the model
_GENERATED = {"pass.json", "manifest.json", "signature"}


@dataclass
class SigningMaterial:
    wwdr: x509.Certificate
    signer_cert: x509.Certificate
    signer_key: Any

    @classmethod
    def load(cls, certs_dir: Path, password: Optional[str] = None) -> "SigningMaterial":
        try:
            wwdr = x509.load_pem_x509_certificate((certs_dir / "wwdr.pem").read_bytes())
            signer_cert = x509.load_pem_x509_certificate((certs_dir / "pass_cert.pem").read_bytes())
            signer_key = serialization.load_pem_private_key(
                (certs_dir / "passkey.key").read_bytes(),
                password=password.encode("utf-8") if password else None,
            )
        except (OSError, ValueError, TypeError) as exc:
            raise PassError(f"certificados inválidos en {certs_dir}: {exc}") from exc
        return cls(wwdr=wwdr, signer_cert=signer_cert, signer_key=signer_key)


def _set_first(section: Dict[str, Any], key: str, value: Any) -> None:
    fields = section.get(key)
    if fields:
        fields[0]["value"] = value


def fill_template(template: Dict[str, Any], holder: CardHolder) -> Dict[str, Any]:
    """Return a copy of ``template`` personalised for ``holder``."""
    data = json.loads(json.dumps(template))
    data["serialNumber"] = holder.id
    for style in PASS_STYLES:
        section = data.get(style)
        if not isinstance(section, dict):
            continue
        _set_first(section, "headerFields", holder.nivel)
        _set_first(section, "primaryFields", holder.puntos)
        _set_first(section, "secondaryFields", holder.nombre)
        _set_first(section, "auxiliaryFields", holder.id)
    barcode = {
        "message": holder.id,
        "format": "PKBarcodeFormatPDF417",
        "messageEncoding": "iso-8859-1",
        "altText": holder.id,
    }
    data["barcodes"] = [barcode]
    # iOS < 9 only reads the singular key
    data["barcode"] = barcode
    return data


def build_manifest(files: Dict[str, bytes]) -> bytes:
    manifest = {name: hashlib.sha1(content).hexdigest() for name, content in sorted(files.items())}
    return json.dumps(manifest, indent=2).encode("utf-8")


def sign_manifest(manifest: bytes, material: SigningMaterial) -> bytes:
    try:
        return (
            pkcs7.PKCS7SignatureBuilder()
            .set_data(manifest)
            .add_signer(material.signer_cert, material.signer_key, hashes.SHA256())
            .add_certificate(material.wwdr)
            .sign(serialization.Encoding.DER, [pkcs7.PKCS7Options.DetachedSignature, pkcs7.PKCS7Options.Binary])
        )
    except (TypeError, ValueError) as exc:
        raise PassError(f"no se pudo firmar el manifiesto: {exc}") from exc


class PassBuilder:
    def __init__(self, settings: Optional[Settings] = None, store: Optional[StoreClient] = None) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.model_dir = self.settings.passkit_dir / "model.pass"
        self.certs_dir = self.settings.passkit_dir / "certs"

    def card_holder(self, serial_number: str) -> CardHolder:
        table = self.settings.pass_holders_table
        if table and self.store is not None:
            record = self.store.query_one(table, equals={"id": serial_number})
            return CardHolder(
                id=serial_number,
                nombre=record.get("nombre") or self.settings.pass_demo_name,
                nivel=record.get("nivel") or self.settings.pass_demo_level,
                puntos=record.get("puntos", self.settings.pass_demo_points),
            )
        return CardHolder(
            id=serial_number,
            nombre=self.settings.pass_demo_name,
            nivel=self.settings.pass_demo_level,
            puntos=self.settings.pass_demo_points,
        )

    def _model_files(self) -> Dict[str, bytes]:
        if not (self.model_dir / "pass.json").is_file():
            raise PassError(f"modelo de pase no encontrado en {self.model_dir}")
        files: Dict[str, bytes] = {}
        for path in sorted(self.model_dir.rglob("*")):
            if path.is_file() and not path.name.startswith("."):
                files[path.relative_to(self.model_dir).as_posix()] = path.read_bytes()
        return files

    @log_call
    def build(self, serial_number: str, pass_type_identifier: Optional[str] = None) -> bytes:
        """Assemble and sign the pass for ``serial_number``; returns the archive bytes."""
        holder = self.card_holder(serial_number)
        files = self._model_files()
        try:
            template = json.loads(files["pass.json"])
        except ValueError as exc:
            raise PassError(f"pass.json inválido: {exc}") from exc
        material = SigningMaterial.load(self.certs_dir, self.settings.passkit_key_password)

        contents = {name: data for name, data in files.items() if name not in _GENERATED}
        contents["pass.json"] = json.dumps(fill_template(template, holder), ensure_ascii=False).encode("utf-8")
        manifest = build_manifest(contents)
        signature = sign_manifest(manifest, material)

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for name, data in contents.items():
                archive.writestr(name, data)
            archive.writestr("manifest.json", manifest)
            archive.writestr("signature", signature)

        logger.info(json.dumps({
            "event": "pass_built",
            "serial_number": serial_number,
            "pass_type_identifier": pass_type_identifier,
            "template_pass_type": template.get("passTypeIdentifier"),
            "files": len(contents) + 2,
            "bytes": buffer.tell(),
        }))
        return buffer.getvalue()
