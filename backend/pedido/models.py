# Modelos do serviço de pedidos
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
TELEFONE_PATTERN = r"^\+?\d{8,15}$"


class StatusPedido(str, Enum):
    PENDENTE = "pendente"
    CONFIRMADO = "confirmado"
    ENVIADO = "enviado"
    ENTREGUE = "entregue"
    CANCELADO = "cancelado"


TRANSICOES: Dict[StatusPedido, FrozenSet[StatusPedido]] = {
    StatusPedido.PENDENTE: frozenset({StatusPedido.CONFIRMADO, StatusPedido.CANCELADO}),
    StatusPedido.CONFIRMADO: frozenset({StatusPedido.ENVIADO, StatusPedido.CANCELADO}),
    StatusPedido.ENVIADO: frozenset({StatusPedido.ENTREGUE}),
    StatusPedido.ENTREGUE: frozenset(),
    StatusPedido.CANCELADO: frozenset(),
}


def transicao_permitida(atual: StatusPedido, novo: StatusPedido) -> bool:
    return novo in TRANSICOES[atual]


# Corpo do POST /pedidos
class PedidoCriacao(BaseModel):
    cliente_id: str = Field(min_length=1, max_length=64)
    cliente_nome: str = Field(min_length=1, max_length=120)
    cliente_email: str = Field(pattern=EMAIL_PATTERN, max_length=254)
    cliente_telefone: Optional[str] = Field(default=None, pattern=TELEFONE_PATTERN)
    descricao: Optional[str] = Field(default=None, max_length=500)
    valor: Decimal = Field(gt=0, max_digits=12, decimal_places=2)

    @field_validator("cliente_nome")
    @classmethod
    def nome_sem_espacos(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("o nome do cliente não pode ser vazio")
        return v


class AtualizacaoStatus(BaseModel):
    status: StatusPedido


class Pedido(BaseModel):
    id: int
    cliente_id: str
    cliente_nome: str
    cliente_email: str
    cliente_telefone: Optional[str] = None
    descricao: Optional[str] = None
    valor: Decimal
    status: StatusPedido = StatusPedido.PENDENTE
    criado_em: datetime
    atualizado_em: datetime
