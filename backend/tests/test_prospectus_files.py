"""Tests for serving uploaded prospectus PDFs."""
import os
import time
import uuid
from pathlib import Path
from unittest.mock import patch

import pytest

from app.files.schemas import is_valid_file_id, stored_filename
from app.files.service import ProspectusFileError, ProspectusStorage

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n"


def write_prospectus(directory: Path, file_id: str, content: bytes = PDF_BYTES, age_hours: float = 0) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / stored_filename(file_id)
    path.write_bytes(content)
    if age_hours:
        past = time.time() - age_hours * 3600
        os.utime(path, (past, past))
    return path


@pytest.fixture
def file_id():
    return str(uuid.uuid4())


class TestFileIdValidation:

    @pytest.mark.parametrize("value", [
        "3f2b8c1e-9a4d-4e6f-8b7a-1c2d3e4f5a6b",
        "3F2B8C1E-9A4D-4E6F-8B7A-1C2D3E4F5A6B",
    ])
    def test_accepts_uuid(self, value):
        assert is_valid_file_id(value)

    @pytest.mark.parametrize("value", [
        "",
        "not-a-uuid",
        "3f2b8c1e9a4d4e6f8b7a1c2d3e4f5a6b",
        "3f2b8c1e-9a4d-4e6f-8b7a-1c2d3e4f5a6",
        "zzzzzzzz-9a4d-4e6f-8b7a-1c2d3e4f5a6b",
        "../3f2b8c1e-9a4d-4e6f-8b7a-1c2d3e4f5a6b",
        "3f2b8c1e-9a4d-4e6f-8b7a-1c2d3e4f5a6b/..",
        None,
        42,
    ])
    def test_rejects_non_uuid(self, value):
        assert not is_valid_file_id(value)


class TestProspectusStorageRead:

    def test_bad_id_rejected_before_touching_filesystem(self, upload_dir):
        storage = ProspectusStorage(upload_dir=str(upload_dir))
        with patch.object(Path, "exists", side_effect=AssertionError("filesystem touched")), \
                patch.object(Path, "resolve", side_effect=AssertionError("filesystem touched")):
            with pytest.raises(ProspectusFileError) as exc:
                storage.read("../../etc/passwd")
        assert exc.value.status_code == 400

    def test_empty_id_is_bad_request(self, upload_dir):
        storage = ProspectusStorage(upload_dir=str(upload_dir))
        with pytest.raises(ProspectusFileError) as exc:
            storage.read("")
        assert exc.value.status_code == 400
        assert exc.value.message == "Invalid file ID"

    def test_symlink_escaping_root_is_forbidden(self, upload_dir, tmp_path, file_id):
        outside = tmp_path / "outside.pdf"
        outside.write_bytes(PDF_BYTES)
        upload_dir.mkdir(parents=True)
        os.symlink(outside, upload_dir / stored_filename(file_id))

        storage = ProspectusStorage(upload_dir=str(upload_dir))
        with pytest.raises(ProspectusFileError) as exc:
            storage.read(file_id)
        assert exc.value.status_code == 403

    def test_symlink_inside_root_is_allowed(self, upload_dir, file_id):
        target = write_prospectus(upload_dir, str(uuid.uuid4()))
        os.symlink(target, upload_dir / stored_filename(file_id))

        storage = ProspectusStorage(upload_dir=str(upload_dir))
        assert storage.read(file_id) == PDF_BYTES

    def test_custom_retention_window(self, upload_dir, file_id):
        write_prospectus(upload_dir, file_id, age_hours=2)
        storage = ProspectusStorage(upload_dir=str(upload_dir), retention_hours=1)
        with pytest.raises(ProspectusFileError) as exc:
            storage.read(file_id)
        assert exc.value.status_code == 410

    @pytest.mark.parametrize("age_seconds,served", [
        (24 * 3600, True),
        (24 * 3600 + 1, False),
    ])
    def test_retention_boundary_is_inclusive(self, upload_dir, file_id, age_seconds, served):
        path = write_prospectus(upload_dir, file_id)
        mtime = 1_700_000_000
        os.utime(path, (mtime, mtime))
        storage = ProspectusStorage(upload_dir=str(upload_dir))

        with patch("app.files.service.time.time", return_value=mtime + age_seconds):
            if served:
                assert storage.read(file_id) == PDF_BYTES
            else:
                with pytest.raises(ProspectusFileError) as exc:
                    storage.read(file_id)
                assert exc.value.status_code == 410


class TestGetProspectusEndpoint:

    @pytest.mark.parametrize("bad_id", ["not-a-uuid", "12345", "3f2b8c1e9a4d4e6f8b7a1c2d3e4f5a6b"])
    def test_malformed_id_returns_400(self, api_client, bad_id):
        resp = api_client.get(f"/api/files/prospectus/{bad_id}")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid file ID format"}

    @pytest.mark.parametrize("encoded_id", [
        "..%2F..%2Fetc%2Fpasswd",
        "3f2b8c1e-9a4d-4e6f-8b7a-1c2d3e4f5a6b%2F..",
        "a%2Fb",
    ])
    def test_encoded_slash_in_id_returns_400(self, api_client, encoded_id):
        resp = api_client.get(f"/api/files/prospectus/{encoded_id}")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid file ID format"}

    def test_symlink_outside_root_returns_403(self, api_client, upload_dir, tmp_path, file_id):
        outside = tmp_path / "elsewhere" / "secret.pdf"
        outside.parent.mkdir()
        outside.write_bytes(PDF_BYTES)
        upload_dir.mkdir(parents=True)
        os.symlink(outside, upload_dir / stored_filename(file_id))

        resp = api_client.get(f"/api/files/prospectus/{file_id}")
        assert resp.status_code == 403
        assert resp.json() == {"error": "Illegal file path"}

    def test_missing_file_returns_404(self, api_client, file_id):
        resp = api_client.get(f"/api/files/prospectus/{file_id}")
        assert resp.status_code == 404
        assert resp.json() == {"error": "File not found or expired"}

    def test_stale_file_returns_410(self, api_client, upload_dir, file_id):
        write_prospectus(upload_dir, file_id, age_hours=25)

        resp = api_client.get(f"/api/files/prospectus/{file_id}")
        assert resp.status_code == 410
        assert "error" in resp.json()

    def test_file_just_inside_window_is_served(self, api_client, upload_dir, file_id):
        write_prospectus(upload_dir, file_id, age_hours=23)

        resp = api_client.get(f"/api/files/prospectus/{file_id}")
        assert resp.status_code == 200

    def test_non_pdf_content_returns_400(self, api_client, upload_dir, file_id):
        write_prospectus(upload_dir, file_id, content=b"<html>not a pdf</html>")

        resp = api_client.get(f"/api/files/prospectus/{file_id}")
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid PDF file"}

    def test_valid_pdf_served_with_hardened_headers(self, api_client, upload_dir, file_id):
        write_prospectus(upload_dir, file_id)

        resp = api_client.get(f"/api/files/prospectus/{file_id}")

        assert resp.status_code == 200
        assert resp.content == PDF_BYTES
        assert resp.headers["content-type"] == "application/pdf"
        assert resp.headers["content-length"] == str(len(PDF_BYTES))
        assert resp.headers["content-disposition"] == 'inline; filename="prospectus.pdf"'
        assert resp.headers["cache-control"] == "private, no-cache, no-store, must-revalidate"
        assert resp.headers["x-content-type-options"] == "nosniff"
        assert resp.headers["x-frame-options"] == "DENY"
        assert resp.headers["referrer-policy"] == "no-referrer"

    def test_uppercase_id_is_accepted(self, api_client, upload_dir):
        file_id = str(uuid.uuid4()).upper()
        write_prospectus(upload_dir, file_id)

        resp = api_client.get(f"/api/files/prospectus/{file_id}")
        assert resp.status_code == 200

    def test_read_error_returns_500_without_leaking_details(self, api_client, upload_dir, file_id):
        write_prospectus(upload_dir, file_id)

        with patch.object(Path, "read_bytes", side_effect=PermissionError(f"denied: {upload_dir}")):
            resp = api_client.get(f"/api/files/prospectus/{file_id}")

        assert resp.status_code == 500
        body = resp.json()
        assert body == {"error": "File read failed"}
        assert str(upload_dir) not in resp.text

    def test_stat_error_returns_500(self, api_client, upload_dir, file_id):
        write_prospectus(upload_dir, file_id)

        with patch.object(Path, "stat", side_effect=OSError("stat failed")), \
                patch.object(Path, "exists", return_value=True):
            resp = api_client.get(f"/api/files/prospectus/{file_id}")

        assert resp.status_code == 500
        assert resp.json() == {"error": "Unable to access file"}
