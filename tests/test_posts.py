import pytest
from fastapi import status

API = "/api/v1"


@pytest.fixture
def test_post_data():
    return {
        "title": "Test Post",
        "slug": "test-post",
        "content": "This is a test post content"
    }


@pytest.fixture
def create_post(client):
    """Create a post as the given user and return its data"""
    def _create_post(headers, **fields):
        payload = {
            "title": fields.pop("title", "Post"),
            "slug": fields.pop("slug"),
            "content": fields.pop("content", "Some content"),
            **fields,
        }
        response = client.post(f"{API}/posts", json=payload, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create_post


@pytest.fixture
def create_category(client, admin):
    def _create_category(name, slug):
        headers, _ = admin
        response = client.post(f"{API}/categories", json={"name": name, "slug": slug}, headers=headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]
    return _create_category


class TestPostCreation:
    def test_create_post(self, client, editor, test_post_data):
        """测试创建文章"""
        headers, user = editor
        response = client.post(f"{API}/posts", json=test_post_data, headers=headers)
        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["message"] == "Post created successfully"
        data = body["data"]
        assert data["title"] == test_post_data["title"]
        assert data["content"] == test_post_data["content"]
        assert data["status"] == "draft"
        assert data["contentType"] == "markdown"
        assert data["excerpt"] is None
        assert data["author"] == {"id": user["id"], "username": "editor1", "email": "editor1@example.com"}
        assert data["categories"] == []

    def test_create_post_unauthorized(self, client, test_post_data):
        """测试未认证用户创建文章"""
        response = client.post(f"{API}/posts", json=test_post_data)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert "Access token required" in response.json()["message"]

    def test_create_with_categories(self, client, editor, create_category, test_post_data):
        news = create_category("News", "news")
        tech = create_category("Tech", "tech")
        headers, _ = editor
        test_post_data["categoryIds"] = [tech["id"], news["id"]]
        response = client.post(f"{API}/posts", json=test_post_data, headers=headers)
        assert response.status_code == status.HTTP_201_CREATED
        categories = response.json()["data"]["categories"]
        assert {c["slug"] for c in categories} == {"news", "tech"}

    def test_create_with_unknown_category(self, client, editor, test_post_data):
        headers, _ = editor
        test_post_data["categoryIds"] = [999]
        response = client.post(f"{API}/posts", json=test_post_data, headers=headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message"] == "One or more categories not found"

    def test_duplicate_slug(self, client, editor, test_post_data):
        headers, _ = editor
        client.post(f"{API}/posts", json=test_post_data, headers=headers)
        response = client.post(f"{API}/posts", json=test_post_data, headers=headers)
        assert response.status_code == status.HTTP_409_CONFLICT
        assert "already exists" in response.json()["message"]

    @pytest.mark.parametrize("slug", ["Test-Post", "test post", "test_post", "test!"])
    def test_invalid_slug(self, client, editor, test_post_data, slug):
        headers, _ = editor
        test_post_data["slug"] = slug
        response = client.post(f"{API}/posts", json=test_post_data, headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["message"] == "Validation error"
        assert body["errors"] == ["slug: Slug must contain only lowercase letters, numbers, and hyphens"]

    def test_missing_fields(self, client, editor):
        headers, _ = editor
        response = client.post(f"{API}/posts", json={"slug": "no-title"}, headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        fields = [error.split(":")[0] for error in response.json()["errors"]]
        assert fields == ["title", "content"]

    def test_invalid_featured_image(self, client, editor, test_post_data):
        headers, _ = editor
        test_post_data["featuredImage"] = "not a url"
        response = client.post(f"{API}/posts", json=test_post_data, headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_html_content_is_sanitized(self, client, editor, test_post_data):
        headers, _ = editor
        test_post_data["contentType"] = "html"
        test_post_data["content"] = "<p>Hello</p><script>alert('x')</script><iframe src='x'></iframe>"
        response = client.post(f"{API}/posts", json=test_post_data, headers=headers)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["data"]["content"] == "<p>Hello</p>"


class TestPostListing:
    def test_status_filter(self, client, editor, create_post):
        headers, _ = editor
        create_post(headers, slug="draft-1")
        create_post(headers, slug="pub-1", status="published")
        create_post(headers, slug="draft-2", status="draft")
        create_post(headers, slug="pub-2", status="published")

        response = client.get(f"{API}/posts", params={"status": "published"})
        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert {p["slug"] for p in body["data"]} == {"pub-1", "pub-2"}
        assert all(p["status"] == "published" for p in body["data"])
        assert body["pagination"]["total"] == 2

    def test_pagination(self, client, editor, create_post):
        headers, _ = editor
        for i in range(5):
            create_post(headers, slug=f"post-{i}")

        response = client.get(f"{API}/posts", params={"limit": "2"})
        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 5, "totalPages": 3}

        last_page = client.get(f"{API}/posts", params={"limit": 2, "page": 3}).json()
        assert len(last_page["data"]) == 1

        past_end = client.get(f"{API}/posts", params={"limit": 2, "page": 4}).json()
        assert past_end["data"] == []
        assert past_end["pagination"]["total"] == 5

    def test_last_allowed_page(self, client, editor, create_post):
        from cms.schemas.common import MAX_PAGE

        create_post(editor[0], slug="one")
        response = client.get(f"{API}/posts", params={"page": MAX_PAGE, "limit": 100})
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"] == []
        assert response.json()["pagination"]["total"] == 1

    def test_defaults(self, client):
        body = client.get(f"{API}/posts").json()
        assert body["success"] is True
        assert body["data"] == []
        assert body["pagination"] == {"page": 1, "limit": 10, "total": 0, "totalPages": 0}

    def test_list_items_have_no_content(self, client, editor, create_post):
        headers, _ = editor
        create_post(headers, slug="one")
        item = client.get(f"{API}/posts").json()["data"][0]
        assert "content" not in item
        assert item["author"] == {"id": editor[1]["id"], "username": "editor1"}

    def test_author_filter(self, client, editor, other_editor, create_post):
        create_post(editor[0], slug="mine")
        create_post(other_editor[0], slug="theirs")
        body = client.get(f"{API}/posts", params={"author": other_editor[1]["id"]}).json()
        assert [p["slug"] for p in body["data"]] == ["theirs"]

    def test_category_filter(self, client, editor, create_post, create_category):
        news = create_category("News", "news")
        empty = create_category("Empty", "empty")
        headers, _ = editor
        create_post(headers, slug="in-news", categoryIds=[news["id"]])
        create_post(headers, slug="uncategorized")

        body = client.get(f"{API}/posts", params={"category": news["id"]}).json()
        assert [p["slug"] for p in body["data"]] == ["in-news"]
        assert body["pagination"]["total"] == 1

        body = client.get(f"{API}/posts", params={"category": empty["id"]}).json()
        assert body["data"] == []
        assert body["pagination"]["total"] == 0

    def test_search_matches_any_token(self, client, editor, create_post):
        headers, _ = editor
        create_post(headers, slug="apples", title="Apples", content="fruit")
        create_post(headers, slug="bananas", title="Bananas", content="yellow")
        create_post(headers, slug="cherries", title="Cherries", content="red")

        body = client.get(f"{API}/posts", params={"search": "Apples  Bananas"}).json()
        assert {p["slug"] for p in body["data"]} == {"apples", "bananas"}
        assert body["pagination"]["total"] == 2

    def test_search_checks_content(self, client, editor, create_post):
        headers, _ = editor
        create_post(headers, slug="apples", title="Apples", content="fruit")
        create_post(headers, slug="bananas", title="Bananas", content="yellow")

        body = client.get(f"{API}/posts", params={"search": "yellow grape"}).json()
        assert [p["slug"] for p in body["data"]] == ["bananas"]

    def test_blank_search_is_ignored(self, client, editor, create_post):
        headers, _ = editor
        create_post(headers, slug="apples", title="Apples", content="fruit")
        body = client.get(f"{API}/posts", params={"search": "   "}).json()
        assert body["pagination"]["total"] == 1

    def test_search_treats_wildcards_literally(self, client, editor, create_post):
        headers, _ = editor
        create_post(headers, slug="a", title="100% done")
        create_post(headers, slug="b", title="1000 done")
        body = client.get(f"{API}/posts", params={"search": "100%"}).json()
        assert [p["slug"] for p in body["data"]] == ["a"]

    def test_sort_by_title(self, client, editor, create_post):
        headers, _ = editor
        create_post(headers, slug="b", title="Banana")
        create_post(headers, slug="a", title="Apple")
        create_post(headers, slug="c", title="Cherry")

        asc = client.get(f"{API}/posts", params={"sortBy": "title", "sortOrder": "asc"}).json()
        assert [p["title"] for p in asc["data"]] == ["Apple", "Banana", "Cherry"]
        desc = client.get(f"{API}/posts", params={"sortBy": "title", "sortOrder": "desc"}).json()
        assert [p["title"] for p in desc["data"]] == ["Cherry", "Banana", "Apple"]

    @pytest.mark.parametrize("params", [
        {"status": "archived"},
        {"limit": "0"},
        {"limit": "101"},
        {"page": "abc"},
        {"page": str(10**19)},
        {"sortBy": "content"},
        {"sortOrder": "up"},
        {"author": "-1"},
    ])
    def test_invalid_query(self, client, params):
        response = client.get(f"{API}/posts", params=params)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Validation error"


class TestPostRetrieval:
    def test_get_post(self, client, editor, create_post, create_category):
        news = create_category("News", "news")
        headers, _ = editor
        post = create_post(headers, slug="hello", title="Hello", categoryIds=[news["id"]])

        response = client.get(f"{API}/posts/{post['id']}")
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert data["title"] == "Hello"
        assert data["author"]["username"] == "editor1"
        assert data["categories"] == [{"id": news["id"], "name": "News", "slug": "news"}]

    def test_get_missing_post(self, client):
        response = client.get(f"{API}/posts/999")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"success": False, "message": "Post not found"}

    def test_non_numeric_id(self, client):
        response = client.get(f"{API}/posts/abc")
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestPostUpdate:
    def test_owner_can_update(self, client, editor, create_post):
        headers, _ = editor
        post = create_post(headers, slug="mine")
        response = client.patch(
            f"{API}/posts/{post['id']}",
            json={"title": "Updated", "status": "published"},
            headers=headers
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()["data"]
        assert response.json()["message"] == "Post updated successfully"
        assert data["title"] == "Updated"
        assert data["status"] == "published"
        assert data["slug"] == "mine"
        assert data["content"] == post["content"]

    def test_other_editor_forbidden(self, client, editor, other_editor, create_post):
        post = create_post(editor[0], slug="mine")
        response = client.patch(f"{API}/posts/{post['id']}", json={"title": "Hijacked"}, headers=other_editor[0])
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert "only edit your own posts" in response.json()["message"]

        unchanged = client.get(f"{API}/posts/{post['id']}").json()["data"]
        assert unchanged["title"] == post["title"]

    def test_admin_can_update_any_post(self, client, editor, admin, create_post):
        post = create_post(editor[0], slug="mine")
        response = client.patch(f"{API}/posts/{post['id']}", json={"title": "Moderated"}, headers=admin[0])
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["data"]["title"] == "Moderated"
        assert response.json()["data"]["author"]["username"] == "editor1"

    def test_requires_token(self, client, editor, create_post):
        post = create_post(editor[0], slug="mine")
        response = client.patch(f"{API}/posts/{post['id']}", json={"title": "x"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_update_missing_post(self, client, editor):
        response = client.patch(f"{API}/posts/999", json={"title": "x"}, headers=editor[0])
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_slug_conflict(self, client, editor, create_post):
        headers, _ = editor
        create_post(headers, slug="taken")
        post = create_post(headers, slug="mine")
        response = client.patch(f"{API}/posts/{post['id']}", json={"slug": "taken"}, headers=headers)
        assert response.status_code == status.HTTP_409_CONFLICT

    def test_keep_own_slug(self, client, editor, create_post):
        headers, _ = editor
        post = create_post(headers, slug="mine")
        response = client.patch(f"{API}/posts/{post['id']}", json={"slug": "mine"}, headers=headers)
        assert response.status_code == status.HTTP_200_OK

    def test_invalid_update(self, client, editor, create_post):
        headers, _ = editor
        post = create_post(headers, slug="mine")
        response = client.patch(f"{API}/posts/{post['id']}", json={"slug": "Bad Slug"}, headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "Validation error" in response.json()["message"]

    def test_replace_categories(self, client, editor, create_post, create_category):
        news = create_category("News", "news")
        tech = create_category("Tech", "tech")
        headers, _ = editor
        post = create_post(headers, slug="mine", categoryIds=[news["id"]])
        url = f"{API}/posts/{post['id']}"

        data = client.patch(url, json={"categoryIds": [tech["id"]]}, headers=headers).json()["data"]
        assert [c["slug"] for c in data["categories"]] == ["tech"]

        data = client.patch(url, json={"title": "Renamed"}, headers=headers).json()["data"]
        assert [c["slug"] for c in data["categories"]] == ["tech"]

        data = client.patch(url, json={"categoryIds": []}, headers=headers).json()["data"]
        assert data["categories"] == []

    def test_replace_with_unknown_category_changes_nothing(self, client, editor, create_post, create_category):
        news = create_category("News", "news")
        headers, _ = editor
        post = create_post(headers, slug="mine", categoryIds=[news["id"]])
        response = client.patch(
            f"{API}/posts/{post['id']}",
            json={"title": "New", "categoryIds": [news["id"], 999]},
            headers=headers
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
        data = client.get(f"{API}/posts/{post['id']}").json()["data"]
        assert data["title"] == "Post"
        assert [c["slug"] for c in data["categories"]] == ["news"]

    @pytest.mark.parametrize("field", ["title", "slug", "content", "contentType", "status"])
    def test_null_required_field(self, client, editor, create_post, field):
        """必填字段不能显式设为 null"""
        headers, _ = editor
        post = create_post(headers, slug="mine", title="Original")
        response = client.patch(f"{API}/posts/{post['id']}", json={field: None}, headers=headers)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        body = response.json()
        assert body["message"] == "Validation error"
        assert body["errors"] == [f"{field}: Field cannot be null"]

        unchanged = client.get(f"{API}/posts/{post['id']}").json()["data"]
        assert unchanged["title"] == "Original"
        assert unchanged["slug"] == "mine"

    def test_clear_optional_field(self, client, editor, create_post):
        headers, _ = editor
        post = create_post(headers, slug="mine", excerpt="Short")
        data = client.patch(f"{API}/posts/{post['id']}", json={"excerpt": None}, headers=headers).json()["data"]
        assert data["excerpt"] is None


class TestPostDeletion:
    def test_owner_can_delete(self, client, editor, create_post):
        headers, _ = editor
        post = create_post(headers, slug="mine")
        response = client.delete(f"{API}/posts/{post['id']}", headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Post deleted successfully"

        get_response = client.get(f"{API}/posts/{post['id']}")
        assert get_response.status_code == status.HTTP_404_NOT_FOUND

    def test_other_editor_forbidden(self, client, editor, other_editor, create_post):
        post = create_post(editor[0], slug="mine")
        response = client.delete(f"{API}/posts/{post['id']}", headers=other_editor[0])
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert "only delete your own posts" in response.json()["message"]

    def test_admin_can_delete(self, client, editor, admin, create_post):
        post = create_post(editor[0], slug="mine")
        response = client.delete(f"{API}/posts/{post['id']}", headers=admin[0])
        assert response.status_code == status.HTTP_200_OK

    def test_delete_missing_post(self, client, editor):
        response = client.delete(f"{API}/posts/999", headers=editor[0])
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message"] == "Post not found"

    def test_delete_removes_category_links(self, client, store, editor, create_post, create_category):
        from sqlalchemy import func, select
        from cms.models.post_category import PostCategory

        news = create_category("News", "news")
        headers, _ = editor
        post = create_post(headers, slug="mine", categoryIds=[news["id"]])
        client.delete(f"{API}/posts/{post['id']}", headers=headers)

        with store.session() as session:
            assert session.scalar(select(func.count()).select_from(PostCategory)) == 0
        category = client.get(f"{API}/categories/{news['id']}").json()["data"]
        assert category["postCount"] == 0
