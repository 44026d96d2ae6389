import os
from unittest.mock import AsyncMock, patch

import pytest
from pdf2image.exceptions import PDFPageCountError
from pymongo.errors import PyMongoError

from careerhub.models.schemas import AnalysisResult
from careerhub.services.analysis_store import AnalysisPersister
from careerhub.utils.exceptions import UpstreamAnalysisError

JOB_DESCRIPTION = "Seeking a backend engineer with Node experience"


def _check(client, headers, files=None, job_description=JOB_DESCRIPTION):
    data = {} if job_description is None else {"jobDescription": job_description}
    return client.post("/check-resume", files=files, data=data, headers=headers)


class TestIntakeValidation:
    """Test cases for request validation before extraction"""

    def test_missing_file(self, client, auth_headers, work_dirs, ai_client):
        response = _check(client, auth_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "No file uploaded"
        assert os.listdir(work_dirs.uploads) == []
        ai_client.analyze_resume.assert_not_called()

    @pytest.mark.parametrize("mime_type", ["text/plain", "application/msword", "image/gif", "application/octet-stream"])
    def test_disallowed_type_removes_temp_file(self, client, auth_headers, work_dirs, ai_client, fake_mongo, mime_type):
        files = {"resume": ("resume.bin", b"plain text resume", mime_type)}

        response = _check(client, auth_headers, files)

        assert response.status_code == 400
        assert response.json()["message"] == "Only PDF, DOCX, JPG, and PNG files are allowed"
        assert os.listdir(work_dirs.uploads) == []
        ai_client.analyze_resume.assert_not_called()
        assert fake_mongo.resume_analyses.docs == []

    @pytest.mark.parametrize("job_description", [None, "", "   "])
    def test_missing_job_description_removes_temp_file(self, client, auth_headers, work_dirs, make_pdf, job_description):
        files = {"resume": ("resume.pdf", make_pdf(["Jane Doe"]), "application/pdf")}

        response = _check(client, auth_headers, files, job_description=job_description)

        assert response.status_code == 400
        assert response.json()["message"] == "Job description is required"
        assert os.listdir(work_dirs.uploads) == []

    def test_oversized_upload_rejected(self, client, auth_headers, work_dirs, monkeypatch):
        from careerhub.main import app

        monkeypatch.setattr(app.state.settings, "max_upload_bytes", 1024)
        files = {"resume": ("resume.png", b"\x89PNG" + b"\x00" * 4096, "image/png")}

        response = _check(client, auth_headers, files)

        assert response.status_code == 400
        assert os.listdir(work_dirs.uploads) == []

    def test_missing_token(self, client, work_dirs, make_pdf):
        files = {"resume": ("resume.pdf", make_pdf(["Jane Doe"]), "application/pdf")}

        response = _check(client, {}, files)

        assert response.status_code == 401
        assert response.json()["message"] == "No token provided"

    def test_invalid_token(self, client, work_dirs, make_pdf):
        files = {"resume": ("resume.pdf", make_pdf(["Jane Doe"]), "application/pdf")}

        response = _check(client, {"Authorization": "Bearer not-a-jwt"}, files)

        assert response.status_code == 403
        assert response.json()["message"] == "Invalid or expired token"


class TestResumeAnalysis:
    """Test cases for a full pipeline run"""

    def test_text_pdf_is_scored_and_persisted(self, client, auth_headers, user_id, work_dirs,
                                              ai_client, fake_mongo, sample_analysis, make_pdf):
        files = {"resume": ("resume.pdf", make_pdf(["Jane Doe", "Node.js developer"]), "application/pdf")}

        with patch("careerhub.services.ocr.convert_from_path") as mock_convert:
            response = _check(client, auth_headers, files)

        assert response.status_code == 200
        assert response.json() == sample_analysis.model_dump()
        mock_convert.assert_not_called()

        resume_text, job_description = ai_client.analyze_resume.call_args.args
        assert "Jane Doe" in resume_text
        assert job_description == JOB_DESCRIPTION

        records = fake_mongo.resume_analyses.docs
        assert len(records) == 1
        assert records[0]["userId"] == user_id
        assert records[0]["jobDescription"] == JOB_DESCRIPTION
        assert records[0]["analysis"] == sample_analysis.model_dump()
        assert os.listdir(work_dirs.uploads) == []

    def test_image_is_read_by_ocr(self, client, auth_headers, work_dirs, ai_client, make_png):
        files = {"resume": ("scan.png", make_png(), "image/png")}

        with patch("careerhub.services.ocr.pytesseract.image_to_string", return_value="Jane Doe\nNode.js dev"):
            response = _check(client, auth_headers, files)

        assert response.status_code == 200
        assert ai_client.analyze_resume.call_args.args[0] == "Jane Doe\nNode.js dev"
        assert os.listdir(work_dirs.uploads) == []

    def test_oversized_image_is_scored_with_empty_text(self, client, auth_headers, work_dirs,
                                                        ai_client, make_png, monkeypatch):
        from PIL import Image

        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        files = {"resume": ("scan.png", make_png(), "image/png")}

        response = _check(client, auth_headers, files)

        assert response.status_code == 200
        assert ai_client.analyze_resume.call_args.args[0] == ""
        assert os.listdir(work_dirs.uploads) == []

    def test_empty_pdf_is_scored_with_empty_text(self, client, auth_headers, work_dirs, ai_client, fake_mongo):
        files = {"resume": ("empty.pdf", b"", "application/pdf")}

        with patch("careerhub.services.ocr.convert_from_path", side_effect=PDFPageCountError("no pages")):
            response = _check(client, auth_headers, files)

        assert response.status_code == 200
        assert ai_client.analyze_resume.call_args.args[0] == ""
        assert len(fake_mongo.resume_analyses.docs) == 1
        assert os.listdir(work_dirs.uploads) == []
        assert os.listdir(work_dirs.scratch) == []

    def test_all_models_failing_returns_generic_error(self, client, auth_headers, work_dirs,
                                                      ai_client, fake_mongo, make_pdf):
        ai_client.analyze_resume.side_effect = UpstreamAnalysisError(
            "Failed with gemini-2.0-flash: HTTP 500", models=ai_client.models
        )
        files = {"resume": ("resume.pdf", make_pdf(["Jane Doe"]), "application/pdf")}

        response = _check(client, auth_headers, files)

        assert response.status_code == 502
        assert response.json()["message"] == "Failed to analyze resume"
        assert "gemini" not in response.text
        assert fake_mongo.resume_analyses.docs == []
        assert os.listdir(work_dirs.uploads) == []

    def test_persistence_failure_returns_no_analysis(self, client, auth_headers, work_dirs, fake_mongo, make_pdf):
        fake_mongo.resume_analyses.insert_one = AsyncMock(side_effect=PyMongoError("connection lost"))
        files = {"resume": ("resume.pdf", make_pdf(["Jane Doe"]), "application/pdf")}

        response = _check(client, auth_headers, files)

        body = response.json()
        assert response.status_code == 500
        assert body["success"] is False
        assert "matchScore" not in body
        assert os.listdir(work_dirs.uploads) == []

    def test_each_run_persists_its_own_record(self, client, auth_headers, work_dirs, fake_mongo, make_pdf):
        files = {"resume": ("resume.pdf", make_pdf(["Jane Doe"]), "application/pdf")}

        assert _check(client, auth_headers, files).status_code == 200
        assert _check(client, auth_headers, files).status_code == 200

        assert len(fake_mongo.resume_analyses.docs) == 2


class TestResumeAnalysisHistory:
    """Test cases for reading persisted analyses back"""

    def test_round_trip(self, client, auth_headers, work_dirs, sample_analysis, make_pdf):
        files = {"resume": ("resume.pdf", make_pdf(["Jane Doe"]), "application/pdf")}
        _check(client, auth_headers, files)

        response = client.get("/api/resume-analyses", headers=auth_headers)

        assert response.status_code == 200
        records = response.json()
        assert len(records) == 1
        assert records[0]["analysis"] == sample_analysis.model_dump()
        assert records[0]["jobDescription"] == JOB_DESCRIPTION

    def test_only_callers_records(self, client, auth_headers, fake_mongo, sample_analysis):
        fake_mongo.resume_analyses.docs.append({
            "_id": "someone-else",
            "userId": "another-user",
            "jobDescription": "JD",
            "analysis": sample_analysis.model_dump(),
        })

        response = client.get("/api/resume-analyses", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == []


class TestAnalysisPersister:
    """Test cases for the persistence step on its own"""

    @pytest.mark.asyncio
    async def test_save_returns_stored_analysis(self, fake_mongo, sample_analysis):
        persister = AnalysisPersister(fake_mongo.resume_analyses)

        stored = await persister.save("user-1", "JD", sample_analysis)

        assert isinstance(stored, AnalysisResult)
        assert stored == sample_analysis
        assert fake_mongo.resume_analyses.docs[0]["createdAt"] is not None
