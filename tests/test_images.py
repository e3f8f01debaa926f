import uuid
from unittest.mock import MagicMock, patch

import pytest

from reparaya.domain.services.schemas import MAX_IMAGE_SIZE_BYTES, S3_KEY_PATTERN
from reparaya.models import ServiceImage, ServiceVisibilityStatus

ACTIVE = ServiceVisibilityStatus.ACTIVE
ARCHIVED = ServiceVisibilityStatus.ARCHIVED


@pytest.fixture
def s3_client():
    mock_client = MagicMock()
    mock_client.generate_presigned_url.return_value = "https://bucket.example.com/signed-put"
    with patch("reparaya.utils.image_storage.get_s3_client", return_value=mock_client):
        yield mock_client


def upload_request(**overrides):
    payload = {"fileName": "fuga_cocina.jpg", "mimeType": "image/jpeg", "fileSize": 1024 * 1024}
    payload.update(overrides)
    return payload


def valid_key(contractor_id, service_id, ext="jpg"):
    return f"contractor-services/{contractor_id}/{service_id}/{uuid.uuid4()}.{ext}"


def test_upload_url_uses_contractor_service_layout(client, auth_headers, contractor, make_service, s3_client):
    service = make_service(contractor)

    resp = client.post(
        f"/services/{service.id}/images/upload-url",
        json=upload_request(mimeType="image/webp"),
        headers=auth_headers(contractor),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["presignedUrl"] == "https://bucket.example.com/signed-put"
    match = S3_KEY_PATTERN.match(body["s3Key"])
    assert match
    assert match.group(1) == contractor.id
    assert match.group(2) == service.id
    assert body["s3Key"].endswith(".webp")

    params = s3_client.generate_presigned_url.call_args.kwargs["Params"]
    assert params["Key"] == body["s3Key"]
    assert params["ContentType"] == "image/webp"


@pytest.mark.parametrize(
    "overrides",
    [
        {"mimeType": "image/gif"},
        {"mimeType": "application/pdf"},
        {"fileSize": MAX_IMAGE_SIZE_BYTES + 1},
        {"fileSize": 0},
        {"fileName": "../../etc/passwd"},
    ],
)
def test_upload_url_rejects_bad_files(client, auth_headers, contractor, make_service, s3_client, overrides):
    service = make_service(contractor)

    resp = client.post(
        f"/services/{service.id}/images/upload-url",
        json=upload_request(**overrides),
        headers=auth_headers(contractor),
    )

    assert resp.status_code == 422
    s3_client.generate_presigned_url.assert_not_called()


def test_upload_url_rejected_at_five_images(client, auth_headers, contractor, make_service, s3_client):
    service = make_service(contractor, images=5)

    resp = client.post(
        f"/services/{service.id}/images/upload-url",
        json=upload_request(),
        headers=auth_headers(contractor),
    )

    assert resp.status_code == 422
    assert resp.json()["error"] == "MaxImagesExceededError"


def test_upload_url_only_for_owner(client, auth_headers, contractor, other_contractor, make_service, s3_client):
    service = make_service(contractor)

    resp = client.post(
        f"/services/{service.id}/images/upload-url",
        json=upload_request(),
        headers=auth_headers(other_contractor),
    )

    assert resp.status_code == 403


def test_archived_service_takes_no_images(client, auth_headers, contractor, make_service, s3_client):
    service = make_service(contractor, ARCHIVED)

    resp = client.post(
        f"/services/{service.id}/images/upload-url",
        json=upload_request(),
        headers=auth_headers(contractor),
    )

    assert resp.status_code == 409


def test_confirm_appends_image_in_order(client, auth_headers, contractor, make_service):
    service = make_service(contractor, images=2)
    key = valid_key(contractor.id, service.id)

    resp = client.post(
        f"/services/{service.id}/images/confirm",
        json={"s3Key": key, "width": 1200, "height": 800, "altText": "Tubería reparada"},
        headers=auth_headers(contractor),
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["order"] == 2
    assert body["s3Key"] == key
    assert body["s3Url"].endswith(key)
    assert body["s3Url"].startswith("https://")


def test_confirm_rejects_key_of_another_service(client, auth_headers, contractor, make_service):
    service = make_service(contractor)
    other = make_service(contractor)

    resp = client.post(
        f"/services/{service.id}/images/confirm",
        json={"s3Key": valid_key(contractor.id, other.id)},
        headers=auth_headers(contractor),
    )

    assert resp.status_code == 422


def test_confirm_rejects_malformed_key(client, auth_headers, contractor, make_service):
    service = make_service(contractor)

    resp = client.post(
        f"/services/{service.id}/images/confirm",
        json={"s3Key": f"uploads/{service.id}/photo.jpg"},
        headers=auth_headers(contractor),
    )

    assert resp.status_code == 422


def test_confirm_same_key_twice_conflicts(client, auth_headers, contractor, make_service):
    service = make_service(contractor)
    payload = {"s3Key": valid_key(contractor.id, service.id)}
    headers = auth_headers(contractor)

    assert client.post(f"/services/{service.id}/images/confirm", json=payload, headers=headers).status_code == 201
    assert client.post(f"/services/{service.id}/images/confirm", json=payload, headers=headers).status_code == 409


def test_delete_image_compacts_order(db, client, auth_headers, contractor, make_service):
    service = make_service(contractor, images=3)
    images = sorted(service.images, key=lambda i: i.order)

    with patch("reparaya.domain.services.images.delete_object", return_value=True) as delete_object:
        resp = client.delete(
            f"/services/{service.id}/images/{images[0].id}", headers=auth_headers(contractor)
        )

    assert resp.status_code == 204
    delete_object.assert_called_once_with(images[0].s3_key)

    db.expire_all()
    remaining = (
        db.query(ServiceImage)
        .filter(ServiceImage.service_id == service.id)
        .order_by(ServiceImage.order)
        .all()
    )
    assert [i.id for i in remaining] == [images[1].id, images[2].id]
    assert [i.order for i in remaining] == [0, 1]


def test_last_image_of_active_service_is_kept(client, auth_headers, contractor, make_service):
    service = make_service(contractor, ACTIVE, images=1)

    with patch("reparaya.domain.services.images.delete_object") as delete_object:
        resp = client.delete(
            f"/services/{service.id}/images/{service.images[0].id}",
            headers=auth_headers(contractor),
        )

    assert resp.status_code == 409
    delete_object.assert_not_called()


def test_storage_failure_does_not_block_delete(client, auth_headers, contractor, make_service):
    service = make_service(contractor, images=1)

    with patch("reparaya.domain.services.images.delete_object", return_value=False):
        resp = client.delete(
            f"/services/{service.id}/images/{service.images[0].id}",
            headers=auth_headers(contractor),
        )

    assert resp.status_code == 204


def test_images_of_draft_are_private(client, auth_headers, contractor, client_user, make_service):
    service = make_service(contractor, images=2)

    assert client.get(f"/services/{service.id}/images").status_code == 404
    assert client.get(f"/services/{service.id}/images", headers=auth_headers(client_user)).status_code == 404
    owner_view = client.get(f"/services/{service.id}/images", headers=auth_headers(contractor))
    assert [i["order"] for i in owner_view.json()] == [0, 1]


def test_images_of_active_service_are_public(client, contractor, make_service):
    service = make_service(contractor, ACTIVE, images=3)

    resp = client.get(f"/services/{service.id}/images")

    assert resp.status_code == 200
    assert len(resp.json()) == 3
