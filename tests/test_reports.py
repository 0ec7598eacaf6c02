"""
Tests for the report endpoints: creation, validation, detail, listing
filters and pagination, edits, status changes and deletion.
"""

import uuid

from conftest import REPORT_FORM


# --- Creation -----------------------------------------------------------------

def test_create_report_defaults(client, make_user, make_report):
    """POST /reports → starts Abierto, with no supporters and the author resolved."""
    user = make_user(first_name="Ana", last_name="López")
    report = make_report(user)

    assert report["title"] == "Bache en Av. Juárez"
    assert report["status"] == "Abierto"
    assert report["support_count"] == 0
    assert report["supported_by"] == []
    assert report["author_id"] == user.id
    assert report["author_name"] == "Ana López"
    assert report["images"] == []
    assert report["comments"] == []


def test_create_report_requires_authentication(client):
    response = client.post("/reports", data=REPORT_FORM)
    assert response.status_code == 401


def test_create_report_missing_fields(client, make_user):
    user = make_user()
    response = client.post(
        "/reports",
        data={"title": "Luminaria fundida", "description": "   "},
        headers=user.headers,
    )
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert "type" in detail and "barrio" in detail and "description" in detail


def test_create_report_short_description(client, make_user):
    user = make_user()
    response = client.post(
        "/reports",
        data={**REPORT_FORM, "description": "Muy corto"},
        headers=user.headers,
    )
    assert response.status_code == 400


def test_create_report_unknown_zone(client, make_user):
    user = make_user()
    response = client.post(
        "/reports",
        data={**REPORT_FORM, "barrio": "Atlantis"},
        headers=user.headers,
    )
    assert response.status_code == 400


def test_create_report_with_image(client, make_user, make_report, s3, png_bytes):
    user = make_user()
    report = make_report(user, image=png_bytes(size=(3000, 1000)))

    assert len(report["images"]) == 1
    assert report["images"][0].startswith(f"https://storage.test/report-images/{user.id}/")
    stored = [key for bucket, key in s3.objects if bucket == "report-images"]
    assert len(stored) == 1


def test_create_report_rejects_oversized_image(client, make_user):
    user = make_user()
    huge = b"\x00" * (5 * 1024 * 1024 + 1)
    response = client.post(
        "/reports",
        data=REPORT_FORM,
        files={"image": ("big.png", huge, "image/png")},
        headers=user.headers,
    )
    assert response.status_code == 400


def test_create_report_rejects_non_image(client, make_user, s3):
    user = make_user()
    response = client.post(
        "/reports",
        data=REPORT_FORM,
        files={"image": ("notes.txt", b"not an image at all", "text/plain")},
        headers=user.headers,
    )
    assert response.status_code == 400
    assert s3.objects == {}


def test_create_report_storage_failure(client, make_user, s3, png_bytes):
    user = make_user()
    s3.fail_uploads = True
    response = client.post(
        "/reports",
        data=REPORT_FORM,
        files={"image": ("foto.png", png_bytes(), "image/png")},
        headers=user.headers,
    )
    assert response.status_code == 502
    assert client.get("/reports").json()["total_count"] == 0


# --- Detail -------------------------------------------------------------------

def test_get_report_not_found(client):
    assert client.get(f"/reports/{uuid.uuid4()}").status_code == 404
    assert client.get("/reports/not-a-uuid").status_code == 404


def test_get_report_resolves_latest_author_profile(client, make_user, make_report):
    """GET /reports/{id} → author name comes from the current profile, not creation time."""
    user = make_user(first_name="Ana", last_name="López")
    report = make_report(user)

    client.patch("/profile/me", data={"first_name": "Anita"}, headers=user.headers)

    detail = client.get(f"/reports/{report['id']}").json()
    assert detail["author_name"] == "Anita López"


def test_get_report_comment_thread_ascending(client, make_user, make_report):
    author = make_user()
    neighbour = make_user(first_name="Beto", last_name="Ruiz")
    report = make_report(author)

    for text in ("primero", "segundo", "tercero"):
        response = client.post(
            f"/reports/{report['id']}/comments",
            data={"content": text},
            headers=neighbour.headers,
        )
        assert response.status_code == 201

    detail = client.get(f"/reports/{report['id']}").json()
    assert [c["content"] for c in detail["comments"]] == ["primero", "segundo", "tercero"]
    assert all(c["user_name"] == "Beto Ruiz" for c in detail["comments"])


# --- Listing ------------------------------------------------------------------

def test_listing_newest_first(client, make_user, make_report):
    user = make_user()
    first = make_report(user, title="Primer reporte")
    second = make_report(user, title="Segundo reporte")

    data = client.get("/reports").json()
    assert [r["id"] for r in data["reports"]] == [second["id"], first["id"]]
    assert data["total_count"] == 2
    assert data["page_size"] == 9


def test_listing_zone_filter_exact(client, make_user, make_report):
    user = make_user()
    make_report(user, barrio="Col. Centro")
    make_report(user, barrio="Las Flores")
    make_report(user, barrio="Las Flores")

    data = client.get("/reports", params={"barrio": "Las Flores"}).json()
    assert data["total_count"] == 2
    assert all(r["barrio"] == "Las Flores" for r in data["reports"])

    # exact, case-sensitive match
    assert client.get("/reports", params={"barrio": "las flores"}).json()["total_count"] == 0


def test_listing_keyword_filter_case_insensitive(client, make_user, make_report):
    user = make_user()
    make_report(user, title="Lampara rota en el parque", type="Alumbrado")
    make_report(user, title="Basura acumulada", description="Nadie recoge la basura desde hace una semana.", type="Basura")

    data = client.get("/reports", params={"keyword": "LAMPARA"}).json()
    assert [r["title"] for r in data["reports"]] == ["Lampara rota en el parque"]

    by_description = client.get("/reports", params={"keyword": "recoge"}).json()
    assert by_description["total_count"] == 1

    by_type = client.get("/reports", params={"type": "Basura"}).json()
    assert [r["type"] for r in by_type["reports"]] == ["Basura"]


def test_listing_keyword_folds_accented_letters(client, make_user, make_report):
    user = make_user()
    make_report(user, title="Bache en Av. Juárez")
    make_report(user, title="Árbol caído sobre la banqueta", type="Áreas verdes")

    for keyword in ("JUÁREZ", "juárez", "Juárez"):
        data = client.get("/reports", params={"keyword": keyword}).json()
        assert [r["title"] for r in data["reports"]] == ["Bache en Av. Juárez"], keyword

    assert client.get("/reports", params={"keyword": "árbol"}).json()["total_count"] == 1


def test_listing_keyword_is_literal(client, make_user, make_report):
    user = make_user()
    make_report(user, title="Descuento del 100% en baches")
    make_report(user, title="Otro reporte cualquiera")

    data = client.get("/reports", params={"keyword": "100%"}).json()
    assert data["total_count"] == 1


def test_listing_pagination(client, make_user, make_report):
    user = make_user()
    created = [make_report(user, title=f"Reporte numero {i}") for i in range(11)]

    page1 = client.get("/reports", params={"page": 1}).json()
    page2 = client.get("/reports", params={"page": 2}).json()
    page3 = client.get("/reports", params={"page": 3}).json()

    assert len(page1["reports"]) == 9
    assert len(page2["reports"]) == 2
    assert page3["reports"] == []
    assert page1["total_count"] == page2["total_count"] == 11

    listed = [r["id"] for r in page1["reports"] + page2["reports"]]
    assert listed == [r["id"] for r in reversed(created)]


def test_listing_cursor_ignores_newer_reports(client, make_user, make_report):
    user = make_user()
    created = [make_report(user, title=f"Reporte numero {i}") for i in range(11)]

    page1 = client.get("/reports").json()
    assert page1["remaining"] == 2
    assert page1["next_cursor"]

    make_report(user, title="Reporte recien creado")

    page2 = client.get("/reports", params={"before": page1["next_cursor"]}).json()
    assert [r["id"] for r in page2["reports"]] == [created[1]["id"], created[0]["id"]]
    assert page2["remaining"] == 0
    assert page2["next_cursor"] is None
    assert page2["total_count"] == 12


def test_listing_rejects_bad_cursor(client):
    response = client.get("/reports", params={"before": "ayer"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid cursor"


def test_listing_rejects_bad_page(client):
    assert client.get("/reports", params={"page": 0}).status_code == 422
    assert client.get("/reports", params={"page_size": 500}).status_code == 422


# --- Edit / status --------------------------------------------------------------

def test_update_report_by_author(client, make_user, make_report):
    user = make_user()
    report = make_report(user)

    response = client.patch(
        f"/reports/{report['id']}",
        data={"title": "Bache gigante en Av. Juárez", "barrio": "San José"},
        headers=user.headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Bache gigante en Av. Juárez"
    assert data["barrio"] == "San José"
    assert data["description"] == report["description"]


def test_update_report_forbidden_for_others(client, make_user, make_report):
    author = make_user()
    other = make_user()
    report = make_report(author)

    response = client.patch(f"/reports/{report['id']}", data={"title": "Titulo ajeno"}, headers=other.headers)
    assert response.status_code == 403


def test_update_report_invalid_values(client, make_user, make_report):
    user = make_user()
    report = make_report(user)
    response = client.patch(f"/reports/{report['id']}", data={"type": "Ovnis"}, headers=user.headers)
    assert response.status_code == 400


def test_update_report_replaces_image(client, make_user, make_report, s3, png_bytes):
    """The new image is stored and referenced before the old one is released."""
    user = make_user()
    report = make_report(user, image=png_bytes())
    old_key = [key for bucket, key in s3.objects if bucket == "report-images"][0]

    response = client.patch(
        f"/reports/{report['id']}",
        files={"image": ("nueva.png", png_bytes(color=(0, 255, 0)), "image/png")},
        headers=user.headers,
    )
    assert response.status_code == 200
    assert len(response.json()["images"]) == 1
    assert old_key not in response.json()["images"][0]
    assert ("report-images", old_key) in s3.deleted


def test_update_report_remove_images(client, make_user, make_report, s3, png_bytes):
    user = make_user()
    report = make_report(user, image=png_bytes())

    response = client.patch(
        f"/reports/{report['id']}",
        data={"remove_images": "true"},
        headers=user.headers,
    )
    assert response.status_code == 200
    assert response.json()["images"] == []
    assert len(s3.deleted) == 1


def test_change_status_author_only(client, make_user, make_report):
    author = make_user()
    other = make_user()
    report = make_report(author)

    forbidden = client.patch(f"/reports/{report['id']}/status", json={"status": "Resuelto"}, headers=other.headers)
    assert forbidden.status_code == 403

    response = client.patch(f"/reports/{report['id']}/status", json={"status": "En proceso"}, headers=author.headers)
    assert response.status_code == 200
    assert response.json()["status"] == "En proceso"

    invalid = client.patch(f"/reports/{report['id']}/status", json={"status": "Cerrado"}, headers=author.headers)
    assert invalid.status_code == 422


# --- Delete ---------------------------------------------------------------------

def test_delete_report_releases_images_and_comments(client, make_user, make_report, s3, png_bytes):
    author = make_user()
    neighbour = make_user()
    report = make_report(author, image=png_bytes())
    client.post(
        f"/reports/{report['id']}/comments",
        data={"content": "Confirmo, sigue ahí"},
        files={"image": ("c.png", png_bytes(), "image/png")},
        headers=neighbour.headers,
    )
    assert len(s3.objects) == 2

    response = client.delete(f"/reports/{report['id']}", headers=author.headers)
    assert response.status_code == 200
    assert s3.objects == {}

    assert client.get(f"/reports/{report['id']}").status_code == 404
    assert client.get("/reports").json()["total_count"] == 0
    assert client.get("/profile/comments", headers=neighbour.headers).json() == []


def test_delete_report_tolerates_storage_failure(client, make_user, make_report, s3, png_bytes):
    """Orphaned images are accepted: the row is still deleted."""
    user = make_user()
    report = make_report(user, image=png_bytes())
    s3.fail_deletes = True

    response = client.delete(f"/reports/{report['id']}", headers=user.headers)
    assert response.status_code == 200
    assert client.get(f"/reports/{report['id']}").status_code == 404


def test_delete_report_forbidden_and_missing(client, make_user, make_report):
    author = make_user()
    other = make_user()
    report = make_report(author)

    assert client.delete(f"/reports/{report['id']}", headers=other.headers).status_code == 403
    assert client.delete(f"/reports/{uuid.uuid4()}", headers=author.headers).status_code == 404
    assert client.get(f"/reports/{report['id']}").status_code == 200


def test_meta_lists_enumerations(client):
    data = client.get("/meta").json()
    assert "Áreas verdes" in data["types"]
    assert "Col. Centro" in data["barrios"]
    assert data["statuses"] == ["Abierto", "En proceso", "Resuelto"]
