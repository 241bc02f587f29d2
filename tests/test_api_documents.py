from datetime import timedelta

import requests

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import bizdocs.main as main
from bizdocs.config import EngineConfig, load_config
from bizdocs.database import Base, get_db
from bizdocs.models import DocumentArtifact
from bizdocs.schemas import OrgProfile
from bizdocs.services.artifact_storage import LocalArtifactStorage
from bizdocs.services.errors import DocumentGenerationError
from bizdocs.services.org_profile_cache import OrgProfileCache
from conftest import make_png, pdf_image_count, pdf_pages


LEDGER_BODY = {
    "customer": {"id": "cust-1", "name": "Ravi Kumar"},
    "transactions": [
        {"transaction_date": "2025-01-05", "transaction_type": "debit", "amount": "500"},
        {"transaction_date": "2025-01-10", "transaction_type": "credit", "amount": "200"},
    ],
    "date_range": {"from": "2025-01-01", "to": "2025-01-31"},
}


@pytest.fixture()
def session_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'api.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine)


@pytest.fixture()
def client(tmp_path, session_factory):
    cache = OrgProfileCache(lambda: OrgProfile(name="Acme Traders", phone="020-1234"))
    storage = LocalArtifactStorage(str(tmp_path / "docs"), "https://cdn.example/docs")
    config = EngineConfig(
        profile_ttl=timedelta(minutes=5),
        asset_dir=str(tmp_path),
        default_watermark=None,
        fetch_timeout_seconds=1.0,
        storage_base_path=str(tmp_path / "docs"),
        public_base_url="https://cdn.example/docs",
    )

    def override_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    main.app.dependency_overrides[get_db] = override_db
    main.app.dependency_overrides[main.get_profile_cache] = lambda: cache
    main.app.dependency_overrides[main.get_storage] = lambda: storage
    main.app.dependency_overrides[main.get_config] = lambda: config
    try:
        yield TestClient(main.app)
    finally:
        main.app.dependency_overrides.clear()


def test_health(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_org_profile_reports_cache_state(client):
    r = client.get("/api/org-profile")
    assert r.status_code == 200
    body = r.json()
    assert body["profile"]["name"] == "Acme Traders"
    assert body["profile"]["terms"]
    assert body["cache_state"] == "valid"
    assert body["fetched_at"]


def test_invoice_endpoint_returns_pdf(client):
    r = client.post(
        "/api/documents/invoice",
        json={"invoice": {"invoice_number": "INV-9", "amount": "100", "tax": "18"}, "customer": {"name": "Ravi"}},
    )
    assert r.status_code == 200
    assert r.headers["content-type"] == "application/pdf"
    assert 'filename="invoice-INV-9.pdf"' in r.headers["content-disposition"]
    text = pdf_pages(r.content)[0]
    assert "Acme Traders" in text
    assert "Service/Product" in text


def test_ledger_endpoint_persists_when_asked(client, session_factory):
    r = client.post("/api/documents/ledger?persist=true", json=LEDGER_BODY)
    assert r.status_code == 200
    body = r.json()
    assert body["kind"] == "ledger"
    assert body["subject_ref"] == "cust-1"
    assert body["public_url"].startswith("https://cdn.example/docs/ledger/ledger-cust-1-")
    with open(body["storage_path"], "rb") as f:
        data = f.read()
    assert len(data) == body["byte_size"]
    assert "300.00 Dr" in pdf_pages(data)[0]

    db = session_factory()
    try:
        row = db.query(DocumentArtifact).filter(DocumentArtifact.id == body["artifact_id"]).one()
        assert row.storage_path == body["storage_path"]
    finally:
        db.close()


def test_ledger_negative_amount_is_a_validation_error(client):
    body = dict(LEDGER_BODY, transactions=[{"transaction_date": "2025-01-05", "transaction_type": "debit", "amount": "-1"}])
    r = client.post("/api/documents/ledger", json=body)
    assert r.status_code == 422


def test_report_endpoint(client):
    r = client.post("/api/documents/report", json={"sales_summary": {"total_sales": "10"}, "period": "weekly"})
    assert r.status_code == 200
    assert "Weekly" in pdf_pages(r.content)[0]


def test_generation_failure_maps_to_500(client, monkeypatch):
    def boom(*args, **kwargs):
        raise DocumentGenerationError("balances do not reconcile")

    monkeypatch.setattr(main, "render_ledger", boom)
    r = client.post("/api/documents/ledger", json=LEDGER_BODY)
    assert r.status_code == 500
    assert r.json() == {"error_code": "GENERATION_FAILED", "message": "balances do not reconcile"}


def test_load_config_reads_environment(monkeypatch):
    monkeypatch.setenv("BIZDOCS_PROFILE_TTL_SECONDS", "60")
    monkeypatch.setenv("BIZDOCS_WATERMARK", " bundled:logo.png ")
    monkeypatch.setenv("BIZDOCS_PUBLIC_BASE_URL", "https://cdn.example/")
    monkeypatch.delenv("BIZDOCS_FETCH_TIMEOUT", raising=False)
    config = load_config()
    assert config.profile_ttl == timedelta(seconds=60)
    assert config.default_watermark == "bundled:logo.png"
    assert config.public_base_url == "https://cdn.example"
    assert config.fetch_timeout_seconds == 10.0


def _ledger_with_watermark(ref):
    return dict(LEDGER_BODY, watermark=ref)


def test_bundled_watermark_is_embedded(client, tmp_path):
    (tmp_path / "logo.png").write_bytes(make_png(40, 40))
    r = client.post("/api/documents/ledger", json=_ledger_with_watermark("bundled:logo.png"))
    assert r.status_code == 200
    assert pdf_image_count(r.content) > 0


def test_watermark_outside_asset_dir_is_not_read(client, tmp_path_factory):
    elsewhere = tmp_path_factory.mktemp("elsewhere") / "outside_asset_dir.png"
    elsewhere.write_bytes(make_png(40, 40))
    for ref in (str(elsewhere), f"file://{elsewhere}", f"bundled:../{elsewhere.parent.name}/{elsewhere.name}"):
        r = client.post("/api/documents/ledger", json=_ledger_with_watermark(ref))
        assert r.status_code == 200
        assert pdf_image_count(r.content) == 0
        assert "300.00 Dr" in pdf_pages(r.content)[0]


def test_watermark_url_on_unlisted_host_is_never_fetched(client, monkeypatch):
    def no_fetch():
        raise AssertionError("remote watermark should not be fetched")

    monkeypatch.setattr(requests, "Session", no_fetch)
    r = client.post("/api/documents/ledger", json=_ledger_with_watermark("http://169.254.169.254/latest/meta-data"))
    assert r.status_code == 200
    assert pdf_image_count(r.content) == 0


def test_load_config_reads_watermark_hosts(monkeypatch):
    monkeypatch.setenv("BIZDOCS_WATERMARK_HOSTS", " CDN.example , assets.example,")
    assert load_config().watermark_hosts == ("cdn.example", "assets.example")
