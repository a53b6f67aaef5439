"""
Profilebook Backend — Post & Image Endpoint Tests
==================================================

What:  Creating, listing and deleting posts and standalone images.
"""

import itertools

import pytest

from conftest import error_code, files_named, upload
from profilebook.services import post_service as post_module


@pytest.fixture
def ticking_clock(monkeypatch):
    """Each new post/image is one second newer than the previous one."""
    ticks = itertools.count(1_700_000_000_000, 1000)
    monkeypatch.setattr(post_module, "current_millis", lambda: next(ticks))


class TestTextPosts:

    @pytest.mark.asyncio
    async def test_create_text_post(self, test_client, registered):
        profile_id = await registered()
        response = await test_client.post("/post_textonly", json={"txt": "Hello world", "id": profile_id})

        body = response.json()
        assert body["status"] == 200
        created = body["message"]
        assert created["id"] == profile_id
        assert created["post"] == "Hello world"
        assert created["pics"] == ""
        assert isinstance(created["date"], int) and created["date"] > 1_600_000_000_000
        assert isinstance(created["postid"], int)

    @pytest.mark.asyncio
    async def test_posts_listed_newest_first(self, test_client, registered, ticking_clock):
        profile_id = await registered()
        for text in ("first", "second", "third"):
            await test_client.post("/post_textonly", json={"txt": text, "id": profile_id})

        posts = (await test_client.get(f"/posts/{profile_id}")).json()

        assert [p["post"] for p in posts] == ["third", "second", "first"]
        assert set(posts[0]) == {"id", "post", "pics", "date", "posts_id"}
        assert posts[0]["date"] > posts[1]["date"] > posts[2]["date"]

    @pytest.mark.asyncio
    async def test_same_millisecond_ties_broken_by_id(self, test_client, registered, monkeypatch):
        monkeypatch.setattr(post_module, "current_millis", lambda: 1_700_000_000_000)
        profile_id = await registered()
        ids = []
        for text in ("a", "b"):
            created = (await test_client.post("/post_textonly", json={"txt": text, "id": profile_id})).json()
            ids.append(created["message"]["postid"])

        posts = (await test_client.get(f"/posts/{profile_id}")).json()
        assert [p["posts_id"] for p in posts] == sorted(ids, reverse=True)

    @pytest.mark.asyncio
    async def test_posts_of_unknown_profile_is_empty(self, test_client):
        assert (await test_client.get("/posts/555")).json() == []


class TestImagePosts:

    @pytest.mark.asyncio
    async def test_post_with_image(self, test_client, registered, images_root, sample_image_bytes):
        profile_id = await registered()
        response = await test_client.post(
            "/post",
            files=upload("Beach.PNG", sample_image_bytes),
            data={"data": "At the beach", "id": str(profile_id)},
        )

        created = response.json()["message"]
        assert created["post"] == "At the beach"
        assert created["pics"].startswith("image_") and created["pics"].endswith(".png")
        assert (images_root / str(profile_id) / created["pics"]).is_file()

    @pytest.mark.asyncio
    async def test_only_first_of_two_files_is_kept(self, test_client, registered, images_root, sample_image_bytes):
        profile_id = await registered()
        files = [
            ("image", ("one.jpg", sample_image_bytes, "image/jpeg")),
            ("image", ("two.jpg", b"second", "image/jpeg")),
        ]
        response = await test_client.post("/post", files=files, data={"data": "two", "id": str(profile_id)})

        created = response.json()["message"]
        assert files_named(images_root / str(profile_id)) == {created["pics"]}
        assert (images_root / str(profile_id) / created["pics"]).read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_more_than_two_files_rejected(self, test_client, registered, images_root, sample_image_bytes):
        profile_id = await registered()
        files = [("image", (f"{n}.jpg", sample_image_bytes, "image/jpeg")) for n in range(3)]
        response = await test_client.post("/post", files=files, data={"data": "x", "id": str(profile_id)})

        assert error_code(response.json()) == "validation_error"
        assert files_named(images_root / str(profile_id)) == set()

    @pytest.mark.asyncio
    async def test_standalone_image(self, test_client, registered, ticking_clock, sample_image_bytes):
        profile_id = await registered()
        created = []
        for name in ("a.jpg", "b.jpg"):
            response = await test_client.post(
                "/post_imgonly", files=upload(name, sample_image_bytes), data={"id": str(profile_id)}
            )
            body = response.json()
            assert body["status"] == 200
            assert set(body["message"]) == {"id", "post", "date", "imgID"}
            created.append(body["message"])

        images = (await test_client.get(f"/images/{profile_id}")).json()

        assert [i["images_id"] for i in images] == [created[1]["imgID"], created[0]["imgID"]]
        assert images[0] == {"image": created[1]["post"], "date": created[1]["date"], "images_id": created[1]["imgID"]}


class TestDeletion:

    @pytest.mark.asyncio
    async def test_delete_image_entry_removes_file(self, test_client, registered, images_root, sample_image_bytes):
        profile_id = await registered()
        created = (
            await test_client.post(
                "/post_imgonly", files=upload("a.jpg", sample_image_bytes), data={"id": str(profile_id)}
            )
        ).json()["message"]

        response = await test_client.post(
            "/delete_imgpost", json={"profileID": profile_id, "id": created["imgID"], "name": created["post"]}
        )

        assert response.json() == {"message": created["imgID"], "status": 200}
        assert (await test_client.get(f"/images/{profile_id}")).json() == []
        assert files_named(images_root / str(profile_id)) == set()

    @pytest.mark.asyncio
    async def test_delete_post_with_image_removes_file(self, test_client, registered, images_root, sample_image_bytes):
        profile_id = await registered()
        created = (
            await test_client.post(
                "/post", files=upload("a.jpg", sample_image_bytes), data={"data": "x", "id": str(profile_id)}
            )
        ).json()["message"]

        response = await test_client.post(
            "/delete-post", json={"profileID": profile_id, "id": created["postid"], "name": created["pics"]}
        )

        assert response.json() == {"message": created["postid"], "status": 200}
        assert (await test_client.get(f"/posts/{profile_id}")).json() == []
        assert files_named(images_root / str(profile_id)) == set()

    @pytest.mark.asyncio
    async def test_delete_text_post_touches_no_files(self, test_client, registered, images_root, sample_image_bytes):
        profile_id = await registered()
        kept = (
            await test_client.post(
                "/post_imgonly", files=upload("k.jpg", sample_image_bytes), data={"id": str(profile_id)}
            )
        ).json()["message"]["post"]
        post = (await test_client.post("/post_textonly", json={"txt": "t", "id": profile_id})).json()["message"]

        # A wrong client-side name must not delete an unrelated file
        await test_client.post("/delete-post", json={"profileID": profile_id, "id": post["postid"], "name": kept})

        assert files_named(images_root / str(profile_id)) == {kept}

    @pytest.mark.asyncio
    async def test_delete_unknown_post_echoes_id(self, test_client, registered):
        profile_id = await registered()
        response = await test_client.post("/delete-post", json={"profileID": profile_id, "id": 31337, "name": ""})
        assert response.json() == {"message": 31337, "status": 200}
