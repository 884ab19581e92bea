from __future__ import annotations

import os
from datetime import date, timedelta
from uuid import uuid4

import httpx
import pytest


pytestmark = pytest.mark.e2e

HEADER = "Número do processo;Prazo processual;Classe principal;Assunto principal;Tarjas;Data da intimação"


def _require_env(name: str) -> str:
    value = (os.getenv(name) or "").strip()
    if not value:
        pytest.fail(f"Variável de ambiente obrigatória ausente: {name}")
    return value


def _api_base_url() -> str:
    return (os.getenv("INTIMACOES_E2E_API_BASE_URL") or "http://127.0.0.1:8000").rstrip("/")


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _csv(*lines: str) -> bytes:
    return "\r\n".join((HEADER,) + lines).encode("latin-1")


@pytest.fixture(scope="session")
def credentials() -> tuple[str, str]:
    return _require_env("INTIMACOES_MATRICULA"), _require_env("INTIMACOES_SENHA")


@pytest.fixture(scope="session")
def client() -> httpx.Client:
    with httpx.Client(base_url=_api_base_url(), timeout=30.0) as http:
        yield http


@pytest.fixture(scope="session")
def access_token(client: httpx.Client, credentials: tuple[str, str]) -> str:
    matricula, senha = credentials
    response = client.post(
        "/api/v1/auth/login",
        json={"matricula": matricula, "senha": senha, "loginType": "admin_super"},
    )
    if response.status_code != 200:
        pytest.fail(
            "Falha no login E2E em /api/v1/auth/login "
            f"(status={response.status_code}) para INTIMACOES_MATRICULA='{matricula}'. "
            "Defina INTIMACOES_MATRICULA/INTIMACOES_SENHA com um admin_super real do banco. "
            f"Resposta: {response.text}"
        )
    payload = response.json()
    token = payload.get("access_token")
    assert token, payload
    return token


def test_e2e_login_and_me(client: httpx.Client, access_token: str) -> None:
    response = client.get("/api/v1/auth/me", headers=_auth_headers(access_token))
    assert response.status_code == 200, response.text
    data = response.json()
    assert data.get("matricula")
    assert data.get("admin_super") is True


def test_e2e_upload_idempotent_then_reopen(client: httpx.Client, access_token: str) -> None:
    headers = _auth_headers(access_token)
    numero = f"E2E-{uuid4().hex[:12]}"
    first_date = date.today() - timedelta(days=5)
    later_date = date.today()

    payload = _csv(f"{numero};15;Procedimento Comum;Saúde;;{first_date:%d/%m/%Y}")
    files = {"csvFile": ("e2e.csv", payload, "text/csv")}

    response_1 = client.post("/api/v1/processes/upload", files=files, headers=headers)
    assert response_1.status_code == 200, response_1.text
    assert response_1.json()["inserted"] == 1

    response_2 = client.post("/api/v1/processes/upload", files=files, headers=headers)
    assert response_2.status_code == 200, response_2.text
    assert response_2.json()["unchanged"] >= 1
    assert response_2.json()["inserted"] == 0

    listed = client.get("/api/v1/processes", params={"search": numero}, headers=headers)
    assert listed.status_code == 200, listed.text
    items = listed.json()["items"]
    assert len(items) == 1
    process_id = items[0]["id"]

    done = client.patch(f"/api/v1/processes/{process_id}/cumprir", headers=headers)
    assert done.status_code == 200, done.text

    newer = _csv(f"{numero};15;Procedimento Comum;Saúde;;{later_date:%d/%m/%Y}")
    response_3 = client.post(
        "/api/v1/processes/upload",
        files={"csvFile": ("e2e.csv", newer, "text/csv")},
        headers=headers,
    )
    assert response_3.status_code == 200, response_3.text
    assert response_3.json()["reopened"] == 1

    reopened = client.get("/api/v1/processes", params={"search": numero}, headers=headers).json()["items"][0]
    assert reopened["cumprido"] is False
    assert reopened["reiteracoes"] == 1

    cleanup = client.post("/api/v1/processes/bulk-delete", json={"process_ids": [process_id]}, headers=headers)
    assert cleanup.status_code == 200, cleanup.text
