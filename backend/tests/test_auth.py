from __future__ import annotations


def _post_login(client, matricula, senha, login_type):
    return client.post(
        "/api/v1/auth/login",
        json={"matricula": matricula, "senha": senha, "loginType": login_type},
    )


def test_login_and_me(client, login):
    data = login("admin", "admin123", "admin_super")
    assert data["login_type"] == "admin_super"
    assert data["refresh_token"]

    me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"})
    assert me.status_code == 200
    body = me.json()
    assert body["matricula"] == "admin"
    assert body["admin_super"] is True


def test_super_can_login_as_padrao_and_is_masked(client, login):
    data = login("admin", "admin123", "admin_padrao")
    assert data["login_type"] == "admin_padrao"
    assert data["user"]["admin_super"] is False


def test_login_errors(client, create_user):
    create_user("padrao1", admin_padrao=True)

    assert _post_login(client, "ninguem", "x", "admin_padrao").status_code == 404
    assert _post_login(client, "padrao1", "Senha123", "admin_super").status_code == 403
    assert _post_login(client, "padrao1", "errada", "admin_padrao").status_code == 401
    assert _post_login(client, "padrao1", "Senha123", "outro").status_code == 422


def test_user_without_admin_flags_is_forbidden(client, create_user):
    create_user("semflag", admin_padrao=False, admin_super=False)
    assert _post_login(client, "semflag", "Senha123", "admin_padrao").status_code == 403


def test_first_login_flow(client, create_user):
    user_id = create_user("novo", senha="12345678", senha_padrao=True)

    first = _post_login(client, "novo", "12345678", "admin_padrao")
    assert first.status_code == 200
    body = first.json()
    assert body["first_login"] is True
    assert body["user_id"] == user_id
    assert body["login_type"] == "admin_padrao"
    assert "access_token" not in body
    token = body["first_login_token"]

    weak = client.post(
        "/api/v1/auth/primeiro-login",
        json={"first_login_token": token, "nova_senha": "fraquinha"},
    )
    assert weak.status_code == 422

    changed = client.post(
        "/api/v1/auth/primeiro-login",
        json={"first_login_token": token, "nova_senha": "NovaSenha1"},
    )
    assert changed.status_code == 200
    assert changed.json()["access_token"]
    assert changed.json()["login_type"] == "admin_padrao"

    again = client.post(
        "/api/v1/auth/primeiro-login",
        json={"first_login_token": token, "nova_senha": "OutraSenha1"},
    )
    assert again.status_code == 400

    assert "access_token" in _post_login(client, "novo", "NovaSenha1", "admin_padrao").json()


def test_first_login_requires_login_token(client, create_user):
    user_id = create_user("alvo", senha="12345678", senha_padrao=True)

    bare = client.post(
        "/api/v1/auth/primeiro-login",
        json={"user_id": user_id, "nova_senha": "Tomada123", "loginType": "admin_padrao"},
    )
    assert bare.status_code == 401

    forged = client.post(
        "/api/v1/auth/primeiro-login",
        json={"first_login_token": "nao.e.jwt", "nova_senha": "Tomada123"},
    )
    assert forged.status_code == 401

    # a conta continua pendente com a senha padrão
    assert _post_login(client, "alvo", "12345678", "admin_padrao").json()["first_login"] is True
    assert _post_login(client, "alvo", "Tomada123", "admin_padrao").status_code == 401


def test_session_tokens_are_not_first_login_tokens(client, login):
    tokens = login("admin", "admin123", "admin_super")
    for token in (tokens["access_token"], tokens["refresh_token"]):
        response = client.post(
            "/api/v1/auth/primeiro-login",
            json={"first_login_token": token, "nova_senha": "Trocada123"},
        )
        assert response.status_code == 401


def test_first_login_token_does_not_authenticate(client, create_user):
    create_user("pendente", senha="12345678", senha_padrao=True)
    token = _post_login(client, "pendente", "12345678", "admin_padrao").json()["first_login_token"]

    assert client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": token}).status_code == 401


def test_refresh_rotates_and_logout_revokes(client, login):
    tokens = login("admin", "admin123", "admin_super")

    refreshed = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    new_tokens = refreshed.json()
    assert new_tokens["refresh_token"] != tokens["refresh_token"]
    assert new_tokens["login_type"] == "admin_super"

    # o token antigo foi trocado e não vale mais
    reused = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert reused.status_code == 401

    logout = client.post("/api/v1/auth/logout", json={"refresh_token": new_tokens["refresh_token"]})
    assert logout.status_code == 200

    after = client.post("/api/v1/auth/refresh", json={"refresh_token": new_tokens["refresh_token"]})
    assert after.status_code == 401


def test_access_token_is_not_a_refresh_token(client, login):
    tokens = login("admin", "admin123", "admin_super")
    response = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert response.status_code == 401


def test_super_only_routes_reject_padrao_login(client, headers_for):
    headers = headers_for("admin", "admin123", "admin_padrao")

    assert client.get("/api/v1/stats/unassigned-count", headers=headers).status_code == 403
    assert client.post(
        "/api/v1/processes/bulk-delete", json={"process_ids": [1]}, headers=headers
    ).status_code == 403
    assert client.get("/api/v1/admin/users", headers=headers).status_code == 200


def test_revoked_permission_invalidates_token(client, create_user, headers_for):
    from app.db.session import SessionLocal
    from app.models.user import User

    create_user("temp", admin_padrao=True)
    headers = headers_for("temp")

    session = SessionLocal()
    try:
        user = session.query(User).filter(User.matricula == "temp").one()
        user.admin_padrao = False
        session.commit()
    finally:
        session.close()

    assert client.get("/api/v1/auth/me", headers=headers).status_code == 403
