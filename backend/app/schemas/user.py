from pydantic import BaseModel, ConfigDict


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    matricula: str
    nome: str
    admin_padrao: bool
    admin_super: bool


class UserSummaryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    matricula: str
    nome: str
