import importlib.util
from pathlib import Path

from conftest import pdf_pages


SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "render_sample_documents.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("render_sample_documents", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_render_all_writes_three_documents(tmp_path):
    paths = _load_script().render_all(tmp_path / "out")
    assert sorted(p.name for p in paths) == ["sample-invoice.pdf", "sample-ledger.pdf", "sample-report.pdf"]
    for path in paths:
        assert path.read_bytes().startswith(b"%PDF")

    ledger_text = pdf_pages((tmp_path / "out" / "sample-ledger.pdf").read_bytes())[0]
    assert "18010.00 Dr" in ledger_text
