import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel

TOPIC_PEDIDOS_CRIADOS = 'pedidos.criados'
TOPIC_PEDIDOS_STATUS_ATUALIZADO = 'pedidos.status_atualizado'
TOPIC_PEDIDOS_EXCLUIDOS = 'pedidos.excluidos'
TOPIC_NOTIFICACOES_FALHAS = 'notificacoes.falhas'

TOPICOS_PEDIDOS = (
    TOPIC_PEDIDOS_CRIADOS,
    TOPIC_PEDIDOS_STATUS_ATUALIZADO,
    TOPIC_PEDIDOS_EXCLUIDOS,
)


def agora() -> datetime:
    return datetime.now(timezone.utc)


# Envelope publicado na exchange
class Evento(BaseModel):
    evento_id: str
    tipo: str
    ocorrido_em: datetime
    dados: Dict[str, Any]


# Retrato do pedido transportado nos eventos de pedido
class DadosPedido(BaseModel):
    id: int
    cliente_id: str
    cliente_nome: str
    cliente_email: Optional[str] = None
    cliente_telefone: Optional[str] = None
    descricao: Optional[str] = None
    valor: Decimal
    status: str


class EventoPedido(BaseModel):
    evento_id: str
    tipo: str
    ocorrido_em: datetime
    dados: DadosPedido


def montar_evento(tipo: str, dados: Dict[str, Any]) -> Evento:
    return Evento(
        evento_id=uuid.uuid4().hex,
        tipo=tipo,
        ocorrido_em=agora(),
        dados=dados,
    )
