import json
import queue
import threading
from typing import List, Optional, Set

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from ..comum.config import settings
from ..comum.erros import NotificacaoNaoEncontrada, TransicaoInvalida
from ..comum.eventos import TOPICOS_PEDIDOS
from ..comum.logs import configurar_logs
from ..comum.mensageria import ConsumidorEventos, PublicadorEventos
from .canais import criar_canais
from .consumidor import FILA_NOTIFICACOES, criar_callback
from .models import Notificacao, StatusNotificacao
from .repositorio import RepositorioNotificacoes
from .servico import ServicoNotificacoes

logger = configurar_logs("notificacao.api")

app = FastAPI(title="Serviço de Notificação")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uma fila por cliente SSE conectado
TAMANHO_FILA_SSE = 1000
INTERVALO_SSE = 1.0
_assinantes: Set["queue.Queue[Notificacao]"] = set()
_assinantes_lock = threading.Lock()


def assinar_feed() -> "queue.Queue[Notificacao]":
    fila: "queue.Queue[Notificacao]" = queue.Queue(maxsize=TAMANHO_FILA_SSE)
    with _assinantes_lock:
        _assinantes.add(fila)
    return fila


def cancelar_assinatura(fila: "queue.Queue[Notificacao]"):
    with _assinantes_lock:
        _assinantes.discard(fila)


def publicar_no_feed(notificacao: Notificacao):
    with _assinantes_lock:
        filas = list(_assinantes)
    for fila in filas:
        try:
            fila.put_nowait(notificacao)
        except queue.Full:
            logger.warning("Fila SSE de um cliente cheia; notificação %s descartada para ele", notificacao.id)


_servico = ServicoNotificacoes(
    RepositorioNotificacoes(settings.NOTIFICACOES_ARQUIVO, settings.NOTIFICACAO_EVENTOS_RETIDOS),
    criar_canais(settings),
    max_tentativas=settings.NOTIFICACAO_MAX_TENTATIVAS,
    backoff_base=settings.NOTIFICACAO_BACKOFF_BASE,
    backoff_fator=settings.NOTIFICACAO_BACKOFF_FATOR,
    backoff_maximo=settings.NOTIFICACAO_BACKOFF_MAXIMO,
    publicador=PublicadorEventos(),
    ao_finalizar=publicar_no_feed,
)
_consumidor: Optional[ConsumidorEventos] = None


def get_servico() -> ServicoNotificacoes:
    return _servico

###################################################################

# SSE Generator: Gera mensagens contínuas para o cliente até ele desconectar
async def sse_notificacoes(fila: "queue.Queue[Notificacao]", request: Optional[Request] = None):
    try:
        while True:
            if request is not None and await request.is_disconnected():
                break
            try:
                notificacao = await run_in_threadpool(fila.get, True, INTERVALO_SSE)
            except queue.Empty:
                continue
            yield f"data: {json.dumps(notificacao.model_dump(mode='json'), ensure_ascii=False)}\n\n"
    finally:
        cancelar_assinatura(fila)

###################################################################

@app.get("/")
def root():
    return {"message": "Serviço de Notificação está rodando"}


@app.get("/notificacoes", response_model=List[Notificacao])
def listar_notificacoes(
    pedido_id: Optional[int] = None,
    status: Optional[StatusNotificacao] = None,
    servico: ServicoNotificacoes = Depends(get_servico),
):
    return servico.repositorio.listar(pedido_id=pedido_id, status=status)


# Endpoint SSE para enviar notificações ao cliente
@app.get("/notificacoes/stream")
async def notificacoes_sse(request: Request):
    return StreamingResponse(sse_notificacoes(assinar_feed(), request), media_type="text/event-stream")


@app.get("/notificacoes/{notificacao_id}", response_model=Notificacao)
def obter_notificacao(notificacao_id: int, servico: ServicoNotificacoes = Depends(get_servico)):
    try:
        return servico.repositorio.obter(notificacao_id)
    except NotificacaoNaoEncontrada as e:
        raise HTTPException(status_code=404, detail=str(e))


# Síncrono: as novas tentativas dormem entre si, então roda no threadpool
@app.post("/notificacoes/{notificacao_id}/reenviar", response_model=Notificacao)
def reenviar_notificacao(notificacao_id: int, servico: ServicoNotificacoes = Depends(get_servico)):
    try:
        return servico.reenviar(notificacao_id)
    except NotificacaoNaoEncontrada as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransicaoInvalida:
        raise HTTPException(status_code=409, detail=f"Notificação {notificacao_id} já foi enviada")

###################################################################

@app.on_event("startup")
def start_rabbitmq_consumer():
    global _consumidor
    if not settings.MENSAGERIA_HABILITADA:
        logger.info("Mensageria desabilitada; consumidor não iniciado")
        return
    _consumidor = ConsumidorEventos(FILA_NOTIFICACOES, TOPICOS_PEDIDOS, criar_callback(_servico))
    _consumidor.iniciar_em_thread()


@app.on_event("shutdown")
def stop_rabbitmq_consumer():
    if _consumidor is not None:
        _consumidor.parar()
