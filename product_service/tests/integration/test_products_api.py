"""
Integration tests for the Product Service API: routing, auth, persistence,
image files and event publication working together.
"""

from pathlib import Path

import pytest

PRODUCTS_URL = "/api/v1/products/"


def create_product(client, headers, name="Desk lamp", price="39.90", image=None):
    files = {"image": image} if image else None
    return client.post(
        PRODUCTS_URL,
        data={"name": name, "description": f"{name} description", "price": price},
        files=files,
        headers=headers,
    )


class TestHealth:
    def test_health_needs_no_token(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["events"]["status"] == "degraded"
        assert body["checks"]["image_storage"]["status"] == "healthy"


class TestCreateProduct:
    def test_create_product(self, client, admin_headers, mock_event_producer):
        response = create_product(client, admin_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Desk lamp"
        assert body["price"] == "39.90"
        assert body["user_id"] == "admin-1"
        assert body["image"] is None
        assert body["stock"] is None

        mock_event_producer.publish_product_created.assert_awaited_once()
        payload = mock_event_producer.publish_product_created.await_args.args[0]
        assert payload["id"] == body["id"]

    def test_create_product_with_image(self, client, admin_headers, image_storage):
        response = create_product(
            client, admin_headers, image=("lamp.png", b"png-bytes", "image/png")
        )

        assert response.status_code == 201
        image_path = Path(response.json()["image"])
        assert image_path.parent == image_storage.uploads_dir
        assert image_path.suffix == ".png"
        assert image_path.read_bytes() == b"png-bytes"

    def test_create_product_requires_admin(self, client, user_headers, mock_event_producer):
        response = create_product(client, user_headers)

        assert response.status_code == 403
        mock_event_producer.publish_product_created.assert_not_called()

    def test_create_product_requires_token(self, client):
        response = create_product(client, headers={})

        assert response.status_code == 401
        assert response.json()["error"]["type"] == "authentication_error"

    def test_create_product_missing_field(self, client, admin_headers):
        response = client.post(
            PRODUCTS_URL, data={"name": "Lamp", "price": "1.00"}, headers=admin_headers
        )

        assert response.status_code == 422
        assert response.json()["error"]["type"] == "validation_error"

    def test_create_product_blank_name(self, client, admin_headers, mock_event_producer):
        response = create_product(client, admin_headers, name="   ")

        assert response.status_code == 422
        mock_event_producer.publish_product_created.assert_not_called()

    def test_create_product_keeps_two_decimal_price(self, client, admin_headers):
        response = create_product(client, admin_headers, name="Widget", price="9.99")

        assert response.status_code == 201
        assert response.json()["price"] == "9.99"

    @pytest.mark.parametrize("price", ["9.999", "12345678901"])
    def test_create_product_rejects_price_the_column_cannot_hold(
        self, client, admin_headers, user_headers, mock_event_producer, price
    ):
        response = create_product(client, admin_headers, name="Widget", price=price)

        assert response.status_code == 422
        assert response.json()["error"]["type"] == "validation_error"
        mock_event_producer.publish_product_created.assert_not_called()
        listing = client.get(PRODUCTS_URL, headers=user_headers).json()
        assert listing["total_results"] == 0


class TestReadProducts:
    def test_get_product(self, client, admin_headers, user_headers):
        product_id = create_product(client, admin_headers).json()["id"]

        response = client.get(f"{PRODUCTS_URL}{product_id}", headers=user_headers)

        assert response.status_code == 200
        assert response.json()["id"] == product_id

    def test_get_missing_product(self, client, user_headers):
        response = client.get(f"{PRODUCTS_URL}999", headers=user_headers)

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Product not found"

    def test_get_product_non_numeric_id(self, client, user_headers):
        response = client.get(f"{PRODUCTS_URL}abc", headers=user_headers)

        assert response.status_code == 422

    def test_list_products_paginates(self, client, admin_headers, user_headers):
        for name in ("Alpha", "Bravo", "Charlie"):
            create_product(client, admin_headers, name=name)

        response = client.get(
            PRODUCTS_URL,
            params={"limit": 2, "page": 2, "sortBy": "name:asc"},
            headers=user_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert [doc["name"] for doc in body["results"]] == ["Charlie"]
        assert body["page"] == 2
        assert body["limit"] == 2
        assert body["total_pages"] == 2
        assert body["total_results"] == 3

    def test_list_products_default_limit(self, client, user_headers):
        body = client.get(PRODUCTS_URL, headers=user_headers).json()

        assert body["limit"] == 10
        assert body["page"] == 1
        assert body["results"] == []
        assert body["total_pages"] == 0

    def test_list_products_filter_and_projection(self, client, admin_headers, user_headers):
        create_product(client, admin_headers, name="Alpha")
        create_product(client, admin_headers, name="Bravo")

        response = client.get(
            PRODUCTS_URL,
            params={"name": "Bravo", "projectBy": "name:include"},
            headers=user_headers,
        )

        body = response.json()
        assert body["total_results"] == 1
        assert body["results"] == [{"id": body["results"][0]["id"], "name": "Bravo"}]

    @pytest.mark.parametrize(
        "params",
        [{"sortBy": "secret:asc"}, {"sortBy": "name:sideways"}, {"projectBy": "x:include"}],
    )
    def test_list_products_bad_options(self, client, user_headers, params):
        response = client.get(PRODUCTS_URL, params=params, headers=user_headers)

        assert response.status_code == 400

    def test_list_products_rejects_zero_limit(self, client, user_headers):
        response = client.get(PRODUCTS_URL, params={"limit": 0}, headers=user_headers)

        assert response.status_code == 422


class TestUpdateProduct:
    def test_update_product(self, client, admin_headers, mock_event_producer):
        product_id = create_product(client, admin_headers).json()["id"]

        response = client.patch(
            f"{PRODUCTS_URL}{product_id}",
            data={"price": "12.50"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["price"] == "12.50"
        assert body["name"] == "Desk lamp"
        mock_event_producer.publish_product_updated.assert_awaited_once()

    def test_update_product_image_uses_product_id(self, client, admin_headers, image_storage):
        product_id = create_product(client, admin_headers).json()["id"]

        response = client.patch(
            f"{PRODUCTS_URL}{product_id}",
            files={"image": ("new.jpg", b"jpg-bytes", "image/jpeg")},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["image"] == str(image_storage.uploads_dir / f"{product_id}.jpg")

    def test_update_missing_product(self, client, admin_headers, mock_event_producer, image_storage):
        response = client.patch(
            f"{PRODUCTS_URL}999",
            data={"name": "Ghost"},
            files={"image": ("ghost.png", b"boo", "image/png")},
            headers=admin_headers,
        )

        assert response.status_code == 404
        assert not (image_storage.uploads_dir / "999.png").exists()
        mock_event_producer.publish_product_updated.assert_not_called()

    @pytest.mark.parametrize("price", ["5.005", "12345678901"])
    def test_update_rejects_price_the_column_cannot_hold(
        self, client, admin_headers, mock_event_producer, price
    ):
        product_id = create_product(client, admin_headers).json()["id"]

        response = client.patch(
            f"{PRODUCTS_URL}{product_id}", data={"price": price}, headers=admin_headers
        )

        assert response.status_code == 422
        mock_event_producer.publish_product_updated.assert_not_called()
        stored = client.get(f"{PRODUCTS_URL}{product_id}", headers=admin_headers).json()
        assert stored["price"] == "39.90"

    def test_update_requires_a_field(self, client, admin_headers):
        product_id = create_product(client, admin_headers).json()["id"]

        response = client.patch(f"{PRODUCTS_URL}{product_id}", headers=admin_headers)

        assert response.status_code == 422

    def test_update_requires_admin(self, client, admin_headers, user_headers):
        product_id = create_product(client, admin_headers).json()["id"]

        response = client.patch(
            f"{PRODUCTS_URL}{product_id}", data={"name": "x"}, headers=user_headers
        )

        assert response.status_code == 403


class TestDeleteProduct:
    def test_delete_product_removes_row_and_image(
        self, client, admin_headers, mock_event_producer
    ):
        created = create_product(
            client, admin_headers, image=("lamp.png", b"png-bytes", "image/png")
        ).json()

        response = client.delete(f"{PRODUCTS_URL}{created['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]
        assert not Path(created["image"]).exists()
        assert (
            client.get(f"{PRODUCTS_URL}{created['id']}", headers=admin_headers).status_code
            == 404
        )
        mock_event_producer.publish_product_deleted.assert_awaited_once()

    def test_delete_product_when_image_already_gone(self, client, admin_headers):
        created = create_product(
            client, admin_headers, image=("lamp.png", b"png-bytes", "image/png")
        ).json()
        Path(created["image"]).unlink()

        response = client.delete(f"{PRODUCTS_URL}{created['id']}", headers=admin_headers)

        assert response.status_code == 200

    def test_delete_missing_product(self, client, admin_headers, mock_event_producer):
        response = client.delete(f"{PRODUCTS_URL}999", headers=admin_headers)

        assert response.status_code == 404
        mock_event_producer.publish_product_deleted.assert_not_called()

    def test_second_delete_is_not_found(self, client, admin_headers, mock_event_producer):
        product_id = create_product(client, admin_headers).json()["id"]

        assert client.delete(f"{PRODUCTS_URL}{product_id}", headers=admin_headers).status_code == 200
        assert client.delete(f"{PRODUCTS_URL}{product_id}", headers=admin_headers).status_code == 404
        assert mock_event_producer.publish_product_deleted.await_count == 1


class TestLifecycleScenarios:
    def test_get_returns_created_document(self, client, admin_headers):
        created = create_product(client, admin_headers, name="Widget", price="9.99").json()

        fetched = client.get(f"{PRODUCTS_URL}{created['id']}", headers=admin_headers).json()

        assert fetched == created
        assert fetched["stock"] is None
        assert fetched["user_id"] == "admin-1"

    def test_update_zero_padded_missing_id(self, client, admin_headers, mock_event_producer):
        response = client.patch(
            f"{PRODUCTS_URL}000", data={"price": "5"}, headers=admin_headers
        )

        assert response.status_code == 404
        mock_event_producer.publish_product_updated.assert_not_called()

    def test_delete_logs_missing_image(
        self, client, admin_headers, mock_event_producer, caplog
    ):
        created = create_product(
            client, admin_headers, image=("lamp.png", b"png-bytes", "image/png")
        ).json()
        Path(created["image"]).unlink()

        response = client.delete(f"{PRODUCTS_URL}{created['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert f"Failed to delete image: {created['image']}" in caplog.text
        mock_event_producer.publish_product_deleted.assert_awaited_once()
