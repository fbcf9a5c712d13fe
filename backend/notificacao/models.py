from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class CanalNotificacao(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


class StatusNotificacao(str, Enum):
    PENDENTE = "pendente"
    ENVIADA = "enviada"
    FALHA = "falha"


# Modelo de Notificação
class Notificacao(BaseModel):
    id: int
    pedido_id: int
    evento_id: str
    canal: CanalNotificacao
    destinatario: str
    mensagem: str
    status: StatusNotificacao = StatusNotificacao.PENDENTE
    tentativas: int = 0
    ultimo_erro: Optional[str] = None
    criado_em: datetime
    atualizado_em: datetime


class NovaNotificacao(BaseModel):
    pedido_id: int
    evento_id: str
    canal: CanalNotificacao
    destinatario: str
    mensagem: str
