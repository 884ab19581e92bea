import os
import sys
import tempfile

import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("ENV", "dev")
# o seed cria o administrador master (admin / admin123) no startup
os.environ.setdefault("SEED_ENABLED", "true")
os.environ.setdefault("MASTER_MATRICULA", "admin")
os.environ.setdefault("MASTER_PASSWORD", "admin123")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="intimacoes-uploads-"))

import app.models  # noqa: E402,F401
from app.db.base import Base  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402

# monkeypatch hashing to avoid bcrypt cost during tests
from app.core import security  # noqa: E402

security.pwd_context.hash = lambda pw: f"hashed:{pw[:72]}"
security.pwd_context.verify = lambda plain, hashed: hashed == f"hashed:{plain[:72]}"

from app.models.user import User  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture()
def client():
    Base.metadata.create_all(bind=engine)
    with TestClient(app) as test_client:
        yield test_client
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def create_user():
    def _create(
        matricula: str,
        nome: str = "Usuário Teste",
        senha: str = "Senha123",
        admin_padrao: bool = True,
        admin_super: bool = False,
        senha_padrao: bool = False,
    ) -> int:
        session = SessionLocal()
        try:
            user = User(
                matricula=matricula,
                nome=nome,
                hashed_password=security.hash_password(senha),
                senha_padrao=senha_padrao,
                admin_padrao=admin_padrao,
                admin_super=admin_super,
            )
            session.add(user)
            session.commit()
            return user.id
        finally:
            session.close()

    return _create


@pytest.fixture()
def login(client):
    """login(matricula, senha, login_type) -> corpo da resposta de /auth/login."""

    def _login(matricula: str, senha: str, login_type: str) -> dict:
        response = client.post(
            "/api/v1/auth/login",
            json={"matricula": matricula, "senha": senha, "loginType": login_type},
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _login


@pytest.fixture()
def headers_for(login):
    def _headers(matricula: str, senha: str = "Senha123", login_type: str = "admin_padrao") -> dict:
        tokens = login(matricula, senha, login_type)
        return {"Authorization": f"Bearer {tokens['access_token']}"}

    return _headers


@pytest.fixture()
def super_headers(headers_for):
    return headers_for("admin", "admin123", "admin_super")
