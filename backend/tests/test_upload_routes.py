"""
Profilebook Backend — Picture Upload Endpoint Tests
====================================================

What:  /upload-profile and /upload-background, including replacement of the
       previous file and serving the stored image.
"""

import asyncio

import pytest

from conftest import error_code, files_named, upload
from profilebook.services import profile_service as profile_module


class TestUploadProfilePicture:

    @pytest.mark.asyncio
    async def test_upload_stores_file_and_updates_row(self, test_client, registered, images_root, sample_image_bytes):
        profile_id = await registered()
        response = await test_client.post(
            "/upload-profile", files=upload("Me.JPG", sample_image_bytes), data={"id": str(profile_id)}
        )

        body = response.json()
        assert body["status"] == 200
        assert body["message"].startswith("image_")
        assert body["message"].endswith(".jpg")
        assert (images_root / str(profile_id) / body["message"]).read_bytes() == sample_image_bytes

        data = (await test_client.get(f"/data/{profile_id}")).json()
        assert data["profile_pic"] == body["message"]

    @pytest.mark.asyncio
    async def test_replacement_removes_previous_file(self, test_client, registered, images_root, sample_image_bytes):
        profile_id = await registered()
        form = {"id": str(profile_id)}
        first = (await test_client.post("/upload-profile", files=upload("a.jpg", sample_image_bytes), data=form)).json()
        second = (
            await test_client.post(
                "/upload-profile",
                files=upload("b.jpg", b"second picture"),
                data=dict(form, oldName=first["message"]),
            )
        ).json()

        assert second["message"] != first["message"]
        assert files_named(images_root / str(profile_id)) == {second["message"]}

    @pytest.mark.asyncio
    async def test_first_upload_deletes_nothing(self, test_client, registered, images_root, sample_image_bytes):
        profile_id = await registered()
        form = {"id": str(profile_id)}
        pic = (await test_client.post("/upload-profile", files=upload("a.jpg", sample_image_bytes), data=form)).json()

        bg = (
            await test_client.post(
                "/upload-background", files=upload("b.jpg", sample_image_bytes), data=dict(form, oldName="")
            )
        ).json()

        assert files_named(images_root / str(profile_id)) == {pic["message"], bg["message"]}
        data = (await test_client.get(f"/data/{profile_id}")).json()
        assert data["profile_background"] == bg["message"]
        assert data["profile_pic"] == pic["message"]

    @pytest.mark.asyncio
    async def test_stale_old_name_is_not_deleted(self, test_client, registered, images_root, sample_image_bytes):
        profile_id = await registered()
        form = {"id": str(profile_id)}
        gallery = (
            await test_client.post("/post_imgonly", files=upload("g.jpg", sample_image_bytes), data=form)
        ).json()["message"]["post"]

        await test_client.post(
            "/upload-profile", files=upload("a.jpg", sample_image_bytes), data=dict(form, oldName=gallery)
        )

        assert gallery in files_named(images_root / str(profile_id))

    @pytest.mark.asyncio
    async def test_concurrent_uploads_get_distinct_names(self, test_client, registered, images_root, sample_image_bytes):
        profile_id = await registered()
        form = {"id": str(profile_id)}

        responses = await asyncio.gather(
            test_client.post("/upload-profile", files=upload("a.jpg", sample_image_bytes), data=form),
            test_client.post("/upload-background", files=upload("b.jpg", sample_image_bytes), data=form),
        )

        names = {r.json()["message"] for r in responses}
        assert len(names) == 2
        assert names <= files_named(images_root / str(profile_id))


class TestUploadFailures:

    @pytest.mark.asyncio
    async def test_unknown_profile_leaves_no_file(self, test_client, db_tables, images_root, sample_image_bytes):
        response = await test_client.post(
            "/upload-profile", files=upload("a.jpg", sample_image_bytes), data={"id": "777"}
        )

        assert error_code(response.json()) == "not_found"
        assert files_named(images_root / "777", exclude_hidden=False) == set()

    @pytest.mark.asyncio
    async def test_database_failure_discards_new_file(
        self, test_client, registered, images_root, sample_image_bytes, monkeypatch
    ):
        profile_id = await registered()
        form = {"id": str(profile_id)}
        first = (await test_client.post("/upload-profile", files=upload("a.jpg", sample_image_bytes), data=form)).json()

        async def broken(*args, **kwargs):
            from profilebook.exceptions import DatabaseError

            raise DatabaseError()

        monkeypatch.setattr(profile_module.profile_service, "_write_picture", broken)
        response = await test_client.post("/upload-profile", files=upload("b.jpg", b"new"), data=form)

        assert error_code(response.json()) == "database_error"
        assert files_named(images_root / str(profile_id)) == {first["message"]}

    @pytest.mark.asyncio
    async def test_empty_file_rejected(self, test_client, registered):
        profile_id = await registered()
        response = await test_client.post(
            "/upload-profile", files=upload("a.jpg", b""), data={"id": str(profile_id)}
        )
        assert error_code(response.json()) == "validation_error"

    @pytest.mark.asyncio
    async def test_missing_file_rejected(self, test_client, registered):
        profile_id = await registered()
        response = await test_client.post("/upload-background", data={"id": str(profile_id)})
        assert error_code(response.json()) == "validation_error"


class TestStaticImages:

    @pytest.mark.asyncio
    async def test_uploaded_image_is_served(self, test_client, registered, sample_image_bytes):
        profile_id = await registered()
        name = (
            await test_client.post(
                "/upload-profile", files=upload("a.jpg", sample_image_bytes), data={"id": str(profile_id)}
            )
        ).json()["message"]

        response = await test_client.get(f"/images/{profile_id}/{name}")

        assert response.status_code == 200
        assert response.content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_missing_image_is_404(self, test_client, registered):
        profile_id = await registered()
        response = await test_client.get(f"/images/{profile_id}/nope.jpg")
        assert response.status_code == 404
