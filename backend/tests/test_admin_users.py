from __future__ import annotations

from app.db.session import SessionLocal
from app.models.process import Process
from app.models.refresh_token import RefreshToken
from app.models.user import User


def _pre_cadastro(client, headers, **overrides):
    payload = {
        "matricula": "joao01",
        "nome": "João da Silva",
        "senha": "12345678",
        "tipo_cadastro": "admin_padrao",
    }
    payload.update(overrides)
    return client.post("/api/v1/admin/users", json=payload, headers=headers)


def test_pre_cadastro_and_list(client, super_headers):
    created = _pre_cadastro(client, super_headers)
    assert created.status_code == 200, created.text
    body = created.json()
    assert body["matricula"] == "joao01"
    assert body["admin_padrao"] is True
    assert body["admin_super"] is False
    assert body["senha_padrao"] is True

    listed = client.get("/api/v1/admin/users", headers=super_headers)
    assert listed.status_code == 200
    assert {"matricula": "joao01", "nome": "João da Silva"} in listed.json()


def test_pre_cadastro_conflict_and_update(client, super_headers):
    assert _pre_cadastro(client, super_headers).status_code == 200

    conflict = _pre_cadastro(client, super_headers, nome="Outro Nome")
    assert conflict.status_code == 409

    updated = _pre_cadastro(
        client, super_headers, nome="Outro Nome", tipo_cadastro="admin_super", update_if_exists=True
    )
    assert updated.status_code == 200
    assert updated.json()["nome"] == "Outro Nome"
    assert updated.json()["admin_super"] is True

    # a atualização volta a senha para a padrão
    first = client.post(
        "/api/v1/auth/login",
        json={"matricula": "joao01", "senha": "12345678", "loginType": "admin_super"},
    )
    assert first.json()["first_login"] is True


def test_pre_cadastro_validation(client, super_headers):
    assert _pre_cadastro(client, super_headers, nome="Nome 123").status_code == 422
    assert _pre_cadastro(client, super_headers, senha="curta").status_code == 422
    assert _pre_cadastro(client, super_headers, tipo_cadastro="root").status_code == 422


def test_padrao_cannot_manage_users(client, create_user, headers_for):
    create_user("pad", admin_padrao=True)
    headers = headers_for("pad")

    assert _pre_cadastro(client, headers).status_code == 403
    assert client.post("/api/v1/admin/users/admin/reset-password", headers=headers).status_code == 403
    assert client.delete("/api/v1/admin/users/admin", headers=headers).status_code == 403


def test_reset_password(client, super_headers, create_user):
    create_user("esquecido", senha="Antiga123")

    response = client.post("/api/v1/admin/users/esquecido/reset-password", headers=super_headers)
    assert response.status_code == 200

    login = client.post(
        "/api/v1/auth/login",
        json={"matricula": "esquecido", "senha": "12345678", "loginType": "admin_padrao"},
    )
    assert login.status_code == 200
    assert login.json()["first_login"] is True

    missing = client.post("/api/v1/admin/users/naoexiste/reset-password", headers=super_headers)
    assert missing.status_code == 404


def test_reset_password_invalidates_open_sessions(client, super_headers, create_user, login):
    create_user("sessao", senha="Antiga123")
    tokens = login("sessao", "Antiga123", "admin_padrao")
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}
    assert client.get("/api/v1/auth/me", headers=headers).status_code == 200

    reset = client.post("/api/v1/admin/users/sessao/reset-password", headers=super_headers)
    assert reset.status_code == 200

    assert client.get("/api/v1/auth/me", headers=headers).status_code == 401
    refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 401

    session = SessionLocal()
    try:
        user = session.query(User).filter(User.matricula == "sessao").one()
        open_tokens = (
            session.query(RefreshToken)
            .filter(RefreshToken.user_id == user.id, RefreshToken.revoked_at.is_(None))
            .count()
        )
        assert open_tokens == 0
    finally:
        session.close()


def test_pre_cadastro_update_revokes_refresh_tokens(client, super_headers, create_user, login):
    create_user("joao01", senha="Antiga123")
    tokens = login("joao01", "Antiga123", "admin_padrao")

    updated = _pre_cadastro(client, super_headers, update_if_exists=True)
    assert updated.status_code == 200

    refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 401


def test_delete_user(client, super_headers, create_user):
    user_id = create_user("comprocesso")
    create_user("livre")

    session = SessionLocal()
    try:
        session.add(Process(numero_processo="X1", prazo_processual="10", user_id=user_id))
        session.commit()
    finally:
        session.close()

    assert client.delete("/api/v1/admin/users/comprocesso", headers=super_headers).status_code == 409
    assert client.delete("/api/v1/admin/users/livre", headers=super_headers).status_code == 200
    assert client.delete("/api/v1/admin/users/livre", headers=super_headers).status_code == 404
    assert client.delete("/api/v1/admin/users/admin", headers=super_headers).status_code == 400
