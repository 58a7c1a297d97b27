"""
HTTP route tests through the ASGI app

Fixture data is committed before each request because routes use their own
sessions.
"""

import datetime as dt

import pytest

from database.models import SharePermission, SolutionResource

pytestmark = pytest.mark.api


@pytest.fixture
async def seeded(session, statuses, admin_user, postsales_user, inquiry_user):
    await session.commit()
    return {
        "admin": admin_user,
        "postsales": postsales_user,
        "inquiry": inquiry_user,
        "statuses": statuses,
    }


async def _create_case(api_client, title="Falla de red"):
    response = await api_client.post("/api/v1/cases", json={"title": title})
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================================
# Authentication and authorization
# ============================================================================

@pytest.mark.asyncio
async def test_anonymous_requests_are_rejected(api_client, seeded):
    response = await api_client.get("/api/v1/cases")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_inquiry_role_cannot_create_cases(api_client, auth_state, seeded):
    auth_state.user = seeded["inquiry"]
    response = await api_client.post("/api/v1/cases", json={"title": "No permitido"})
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_capabilities_endpoint(api_client, auth_state, seeded):
    auth_state.user = seeded["postsales"]
    response = await api_client.get("/api/v1/auth/me/capabilities")
    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "Postventa"
    assert body["capabilities"]["canCreateCase"] is True
    assert body["capabilities"]["canManageUsers"] is False


# ============================================================================
# Cases
# ============================================================================

@pytest.mark.asyncio
async def test_case_lifecycle(api_client, auth_state, seeded):
    auth_state.user = seeded["postsales"]
    case = await _create_case(api_client)
    assert case["status"]["name"] == "Abierto"
    assert case["is_locked"] is False

    progress = await api_client.post(
        f"/api/v1/cases/{case['id']}/progress", json={"description": "Se reinició el router"}
    )
    assert progress.status_code == 201

    finalized = await api_client.post(f"/api/v1/cases/{case['id']}/finalize")
    assert finalized.status_code == 200
    assert finalized.json()["is_locked"] is True

    edit = await api_client.patch(f"/api/v1/cases/{case['id']}", json={"title": "Otro"})
    assert edit.status_code == 409

    reopen = await api_client.patch(
        f"/api/v1/cases/{case['id']}",
        json={"status_id": str(seeded["statuses"]["Abierto"].id)},
    )
    assert reopen.status_code == 403

    auth_state.user = seeded["admin"]
    reopen = await api_client.patch(
        f"/api/v1/cases/{case['id']}",
        json={"status_id": str(seeded["statuses"]["Abierto"].id)},
    )
    assert reopen.status_code == 200
    assert reopen.json()["is_locked"] is False


@pytest.mark.asyncio
async def test_create_reads_json_body(api_client, auth_state, seeded):
    auth_state.user = seeded["postsales"]
    case = await _create_case(api_client, "Sin señal")

    response = await api_client.post(
        "/api/v1/tests", json={"title": "Prueba de antena", "case_id": case["id"]}
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["title"] == "Prueba de antena"
    assert body["case_id"] == case["id"]

    invalid = await api_client.post("/api/v1/cases", json={"title": ""})
    assert invalid.status_code == 422
    assert invalid.json()["detail"][0]["loc"][0] == "body"


@pytest.mark.asyncio
async def test_case_listing_and_not_found(api_client, auth_state, seeded):
    auth_state.user = seeded["postsales"]
    await _create_case(api_client, "Pantalla rota")
    await _create_case(api_client, "Batería hinchada")

    response = await api_client.get("/api/v1/cases", params={"search": "pantalla"})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["title"] == "Pantalla rota"

    missing = await api_client.get("/api/v1/cases/00000000-0000-0000-0000-000000000000")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_attachment_upload(api_client, auth_state, seeded):
    auth_state.user = seeded["postsales"]
    case = await _create_case(api_client)

    response = await api_client.post(
        f"/api/v1/cases/{case['id']}/attachments",
        files={"file": ("captura.png", b"png-bytes", "image/png")},
    )
    assert response.status_code == 201, response.text
    assert response.json()["file_name"] == "captura.png"

    listing = await api_client.get(f"/api/v1/cases/{case['id']}/attachments")
    assert len(listing.json()) == 1


@pytest.mark.asyncio
async def test_record_history(api_client, auth_state, seeded):
    auth_state.user = seeded["postsales"]
    case = await _create_case(api_client)
    await api_client.patch(f"/api/v1/cases/{case['id']}", json={"title": "Falla de red WAN"})

    auth_state.user = seeded["inquiry"]
    response = await api_client.get(f"/api/v1/audit/case/{case['id']}")
    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["action"] for item in items] == ["updated", "created"]
    assert items[0]["user_name"] == "Pedro Postventa"


# ============================================================================
# Catalog and audit administration
# ============================================================================

@pytest.mark.asyncio
async def test_catalog_management(api_client, auth_state, seeded):
    auth_state.user = seeded["postsales"]
    denied = await api_client.post("/api/v1/catalog/applications", json={"name": "App"})
    assert denied.status_code == 403

    auth_state.user = seeded["admin"]
    created = await api_client.post(
        "/api/v1/catalog/applications", json={"name": "App Móvil", "color": "#00FF00"}
    )
    assert created.status_code == 201
    duplicate = await api_client.post("/api/v1/catalog/applications", json={"name": "app móvil"})
    assert duplicate.status_code == 409

    statuses = await api_client.get("/api/v1/catalog/statuses")
    assert [item["name"] for item in statuses.json()] == ["Abierto", "En Progreso", "Cerrado"]


@pytest.mark.asyncio
async def test_global_audit_requires_admin_panel(api_client, auth_state, seeded):
    auth_state.user = seeded["postsales"]
    assert (await api_client.get("/api/v1/admin/audit")).status_code == 403

    auth_state.user = seeded["admin"]
    await api_client.post("/api/v1/catalog/categories", json={"name": "Redes"})

    response = await api_client.get("/api/v1/admin/audit", params={"table": "categories"})
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["items"][0]["description"] == "Registro creado"

    bad = await api_client.get("/api/v1/admin/audit", params={"start": "ayer"})
    assert bad.status_code == 400


# ============================================================================
# Share links
# ============================================================================

@pytest.fixture
async def shared_resource(session, seeded):
    resource = SolutionResource(
        title="Manual público",
        type="document",
        url="http://example.com/manual.pdf",
        folder="General",
        created_by=seeded["postsales"].id,
        share_token="token-publico",
        share_enabled=True,
        share_permission=SharePermission.PUBLIC.value,
    )
    session.add(resource)
    await session.commit()
    return resource


@pytest.mark.asyncio
async def test_share_link_outcomes(api_client, auth_state, session, shared_resource):
    granted = await api_client.get("/api/v1/share/token-publico")
    assert granted.status_code == 200
    assert granted.json()["title"] == "Manual público"

    assert (await api_client.get("/api/v1/share/desconocido")).status_code == 404

    shared_resource.share_permission = SharePermission.AUTHENTICATED.value
    await session.commit()
    assert (await api_client.get("/api/v1/share/token-publico")).status_code == 401

    shared_resource.share_expires_at = dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=1)
    await session.commit()
    assert (await api_client.get("/api/v1/share/token-publico")).status_code == 410


@pytest.mark.asyncio
async def test_share_management_is_limited_to_owner(api_client, auth_state, seeded):
    auth_state.user = seeded["postsales"]
    created = await api_client.post(
        "/api/v1/resources", json={"title": "Guía", "url": "https://example.com/guia"}
    )
    assert created.status_code == 201, created.text
    resource_id = created.json()["id"]
    assert created.json()["share_url"] is None

    enabled = await api_client.post(f"/api/v1/resources/{resource_id}/share")
    assert enabled.status_code == 200
    assert "/share/" in enabled.json()["share_url"]

    auth_state.user = seeded["inquiry"]
    assert (await api_client.delete(f"/api/v1/resources/{resource_id}/share")).status_code == 403


@pytest.mark.asyncio
async def test_path_like_folder_is_a_bad_request(api_client, auth_state, seeded):
    auth_state.user = seeded["postsales"]
    response = await api_client.post(
        "/api/v1/resources/upload",
        data={"folder": "../../x"},
        files={"file": ("notas.txt", b"hola", "text/plain")},
    )
    assert response.status_code == 400


# ============================================================================
# General
# ============================================================================

@pytest.mark.asyncio
async def test_public_config_and_request_id(api_client):
    response = await api_client.get("/api/v1/config", headers={"X-Request-ID": "abc123"})
    assert response.status_code == 200
    assert response.headers["X-Request-ID"] == "abc123"
    body = response.json()
    assert body["max_upload_size"] > 0
    assert "llm_provider" in body["reports"]
