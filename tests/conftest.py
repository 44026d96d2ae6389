import copy
import io
import os
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

os.environ["ENVIRONMENT"] = "testing"
os.environ["ENABLE_REMINDERS"] = "false"
os.environ["JWT_SECRET"] = "careerhub-test-signing-key-0123456789abcdef"
os.environ["GEMINI_API_KEY"] = "test-key"

from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import DESCENDING

from careerhub.dependencies import get_ai_client, get_extractor, get_mongo
from careerhub.main import app
from careerhub.models.schemas import AnalysisResult
from careerhub.services.ai_client import GenerativeClient
from careerhub.services.auth import create_access_token
from careerhub.services.extraction import TextExtractor
from careerhub.services.ocr import OcrEngine


# -------- In-memory stand-in for motor collections --------
def _matches(doc, query):
    for key, cond in (query or {}).items():
        value = doc.get(key)
        if isinstance(cond, dict) and any(k.startswith("$") for k in cond):
            for op, arg in cond.items():
                if op == "$in" and value not in arg:
                    return False
                if op == "$gte" and (value is None or value < arg):
                    return False
                if op == "$lte" and (value is None or value > arg):
                    return False
        elif value != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs = sorted(
            self._docs,
            key=lambda d: d.get(key) or datetime.min.replace(tzinfo=timezone.utc),
            reverse=direction == DESCENDING,
        )
        return self

    def limit(self, n):
        self._docs = self._docs[:n]
        return self

    async def to_list(self, length=None):
        return self._docs if length is None else self._docs[:length]


class FakeCollection:
    def __init__(self):
        self.docs = []

    async def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def insert_many(self, docs):
        ids = []
        for doc in docs:
            ids.append((await self.insert_one(doc)).inserted_id)
        return SimpleNamespace(inserted_ids=ids)

    async def find_one(self, query):
        for doc in self.docs:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query=None):
        return FakeCursor([copy.deepcopy(d) for d in self.docs if _matches(d, query)])

    async def update_one(self, query, update, upsert=False):
        changes = update.get("$set", {})
        for doc in self.docs:
            if _matches(doc, query):
                doc.update(copy.deepcopy(changes))
                return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        if upsert:
            new_doc = {k: v for k, v in query.items() if not isinstance(v, dict)}
            new_doc.update(changes)
            result = await self.insert_one(new_doc)
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=result.inserted_id)
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    async def delete_one(self, query):
        for index, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def create_index(self, keys, **kwargs):
        return "_".join(f"{k}_{d}" for k, d in keys)


class FakeMongo:
    """Same collection surface as MongoService, backed by lists"""

    def __init__(self):
        self.users = FakeCollection()
        self.resume_analyses = FakeCollection()
        self.chats = FakeCollection()
        self.jobs = FakeCollection()
        self.cover_letters = FakeCollection()


# -------- Fixtures --------
@pytest.fixture
def fake_mongo():
    return FakeMongo()


@pytest.fixture
def sample_analysis():
    return AnalysisResult(
        matchScore=78,
        strengths=["Node.js", "REST API design"],
        gaps=["Kubernetes"],
        improvements=["Quantify backend impact"],
        optimizedSection="Backend engineer with five years building Node.js services.",
        beforeAfterComparison="Added measurable outcomes and JD keywords.",
        keywordMatchScore=64,
    )


@pytest.fixture
def ai_client(sample_analysis):
    client = MagicMock(spec=GenerativeClient)
    client.models = ["gemini-1.5-flash", "gemini-2.0-flash"]
    client.analyze_resume.return_value = sample_analysis
    client.chat_reply.return_value = "Tailor your summary to the role."
    return client


@pytest.fixture
def work_dirs(tmp_path, monkeypatch):
    """Point uploads and OCR scratch space at per-test directories"""
    upload_dir = tmp_path / "uploads"
    scratch_dir = tmp_path / "scratch"
    upload_dir.mkdir()
    scratch_dir.mkdir()
    monkeypatch.setattr(app.state.settings, "upload_dir", str(upload_dir))
    monkeypatch.setattr(app.state.settings, "scratch_dir", str(scratch_dir))
    return SimpleNamespace(uploads=upload_dir, scratch=scratch_dir)


@pytest.fixture
def ocr_engine(work_dirs):
    return OcrEngine(scratch_root=str(work_dirs.scratch))


@pytest.fixture
def extractor(ocr_engine):
    return TextExtractor(ocr_engine)


@pytest.fixture
def client(fake_mongo, ai_client, extractor):
    app.dependency_overrides[get_mongo] = lambda: fake_mongo
    app.dependency_overrides[get_ai_client] = lambda: ai_client
    app.dependency_overrides[get_extractor] = lambda: extractor
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_id():
    return str(ObjectId())


@pytest.fixture
def auth_headers(user_id):
    token = create_access_token(user_id, app.state.settings)
    return {"Authorization": f"Bearer {token}"}


# -------- Document factories --------
def _pdf_bytes(lines):
    content = "BT /F1 12 Tf 72 720 Td "
    content += " ".join(f"({line}) Tj 0 -18 Td" for line in lines)
    content += " ET"
    objects = [
        "<< /Type /Catalog /Pages 2 0 R >>",
        "<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        "/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        f"<< /Length {len(content)} >>\nstream\n{content}\nendstream",
        "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n{body}\nendobj\n".encode("latin-1")
    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n0000000000 65535 f \n".encode("latin-1")
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode("latin-1")
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_at}\n%%EOF\n"
    ).encode("latin-1")
    return out


def _png_bytes():
    from PIL import Image

    buf = io.BytesIO()
    Image.new("RGB", (120, 40), "white").save(buf, format="PNG")
    return buf.getvalue()


def _docx_bytes(paragraphs=(), picture=False):
    from docx import Document
    from docx.shared import Inches

    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    if picture:
        doc.add_picture(io.BytesIO(_png_bytes()), width=Inches(1))
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def make_pdf():
    """Single-page PDF with one text line per entry; no entries gives a page without text"""
    return _pdf_bytes


@pytest.fixture
def make_png():
    return _png_bytes


@pytest.fixture
def make_docx():
    return _docx_bytes
