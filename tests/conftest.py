import datetime as dt

import pytest
from fastapi.testclient import TestClient
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from tablero.core.config import Settings
from tablero.main import create_app
from tablero.services.pass_service import PassBuilder
from tablero.services.report_service import ReportContext
from tests.fakes import FakeStore

WINDOW_RECORD = {"start_date": "2024-03-01", "end_date": "2024-03-31"}

PASS_TEMPLATE = """{
  "formatVersion": 1,
  "passTypeIdentifier": "pass.com.example.lealtad",
  "teamIdentifier": "ABCDE12345",
  "organizationName": "Demo",
  "description": "Tarjeta",
  "serialNumber": "X",
  "storeCard": {
    "headerFields": [{"key": "nivel", "label": "NIVEL", "value": ""}],
    "primaryFields": [{"key": "puntos", "label": "PUNTOS", "value": 0}],
    "secondaryFields": [{"key": "nombre", "label": "NOMBRE", "value": ""}],
    "auxiliaryFields": [{"key": "cliente", "label": "# CLIENTE", "value": ""}]
  }
}
"""


def _self_signed(common_name):
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = dt.datetime.now(dt.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - dt.timedelta(days=1))
        .not_valid_after(now + dt.timedelta(days=30))
        .sign(key, hashes.SHA256())
    )
    return key, cert


def write_passkit(root, key_password=None):
    model = root / "model.pass"
    certs = root / "certs"
    model.mkdir(parents=True)
    certs.mkdir(parents=True)
    (model / "pass.json").write_text(PASS_TEMPLATE, encoding="utf-8")
    (model / "icon.png").write_bytes(b"\x89PNG\r\n\x1a\nfake-icon")

    _, wwdr = _self_signed("Test WWDR")
    key, cert = _self_signed("Test Pass Signer")
    encryption = (
        serialization.BestAvailableEncryption(key_password.encode("utf-8"))
        if key_password else serialization.NoEncryption()
    )
    (certs / "wwdr.pem").write_bytes(wwdr.public_bytes(serialization.Encoding.PEM))
    (certs / "pass_cert.pem").write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    (certs / "passkey.key").write_bytes(
        key.private_bytes(serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, encryption)
    )
    return root


@pytest.fixture()
def settings(tmp_path):
    return Settings(page_size=10, passkit_dir=tmp_path / "passkit")


@pytest.fixture()
def store():
    fake = FakeStore({"date_range": [WINDOW_RECORD]})
    fake.add_report("Cortes")
    fake.add_report("Salidas")
    fake.add_report("Kardex")
    return fake


@pytest.fixture()
def passkit_dir(settings):
    return write_passkit(settings.passkit_dir)


@pytest.fixture()
def client(store, settings):
    app = create_app()
    # lifespan is not entered: collaborators are wired to the fake store
    app.state.reports = ReportContext.from_store(store, settings)
    app.state.pass_builder = PassBuilder(settings, store)
    yield TestClient(app)
