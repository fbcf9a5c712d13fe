from typing import List, Optional

import httpx
from fastapi import BackgroundTasks, Depends, FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool

from ..comum.config import settings
from ..comum.erros import ErroPublicacao, PedidoNaoEncontrado, TransicaoInvalida
from ..comum.logs import configurar_logs
from ..comum.mensageria import PublicadorEventos
from .models import AtualizacaoStatus, Pedido, PedidoCriacao, StatusPedido
from .repositorio import RepositorioPedidos
from .servico import ServicoPedidos

logger = configurar_logs("pedido.api")

app = FastAPI(title="Serviço de Pedidos")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

###################################################################

class ClienteNotificacoes:
    """Cliente HTTP do serviço de notificação."""

    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None, timeout: float = 5.0):
        self.base_url = base_url
        self.transport = transport
        self.timeout = timeout

    async def listar_por_pedido(self, pedido_id: int) -> List[dict]:
        async with httpx.AsyncClient(base_url=self.base_url, transport=self.transport, timeout=self.timeout) as client:
            response = await client.get("/notificacoes", params={"pedido_id": pedido_id})
        response.raise_for_status()
        return response.json()


_repositorio = RepositorioPedidos(settings.PEDIDOS_ARQUIVO)
_publicador = PublicadorEventos()
_cliente_notificacoes = ClienteNotificacoes(settings.NOTIFICACAO_SERVICE_URL)


def get_servico() -> ServicoPedidos:
    return ServicoPedidos(_repositorio)


def get_publicador() -> PublicadorEventos:
    return _publicador


def get_cliente_notificacoes() -> ClienteNotificacoes:
    return _cliente_notificacoes


def publicar_evento(publicador: PublicadorEventos, tipo: str, pedido: Pedido):
    try:
        publicador.publicar(tipo, pedido.model_dump(mode="json"))
    except ErroPublicacao:
        logger.exception("Não foi possível publicar o evento %s do pedido %s", tipo, pedido.id)

###################################################################

@app.get("/")
async def root():
    return {"message": "O serviço de pedidos está rodando"}

###################################################################

@app.post("/pedidos", response_model=Pedido, status_code=201)
def criar_pedido(
    dados: PedidoCriacao,
    background_tasks: BackgroundTasks,
    servico: ServicoPedidos = Depends(get_servico),
    publicador: PublicadorEventos = Depends(get_publicador),
):
    pedido, tipo = servico.criar(dados)
    background_tasks.add_task(publicar_evento, publicador, tipo, pedido)
    return pedido


@app.get("/pedidos", response_model=List[Pedido])
def listar_pedidos(
    status: Optional[StatusPedido] = None,
    servico: ServicoPedidos = Depends(get_servico),
):
    return servico.listar(status)


@app.get("/pedidos/{pedido_id}", response_model=Pedido)
def obter_pedido(pedido_id: int, servico: ServicoPedidos = Depends(get_servico)):
    try:
        return servico.obter(pedido_id)
    except PedidoNaoEncontrado as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.patch("/pedidos/{pedido_id}/status", response_model=Pedido)
def atualizar_status(
    pedido_id: int,
    corpo: AtualizacaoStatus,
    background_tasks: BackgroundTasks,
    servico: ServicoPedidos = Depends(get_servico),
    publicador: PublicadorEventos = Depends(get_publicador),
):
    try:
        pedido, tipo = servico.atualizar_status(pedido_id, corpo.status)
    except PedidoNaoEncontrado as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransicaoInvalida as e:
        raise HTTPException(status_code=409, detail=str(e))

    background_tasks.add_task(publicar_evento, publicador, tipo, pedido)
    return pedido


@app.delete("/pedidos/{pedido_id}", status_code=204, response_class=Response)
def excluir_pedido(
    pedido_id: int,
    background_tasks: BackgroundTasks,
    servico: ServicoPedidos = Depends(get_servico),
    publicador: PublicadorEventos = Depends(get_publicador),
):
    try:
        pedido, tipo = servico.excluir(pedido_id)
    except PedidoNaoEncontrado as e:
        raise HTTPException(status_code=404, detail=str(e))

    background_tasks.add_task(publicar_evento, publicador, tipo, pedido)
    return Response(status_code=204)

###################################################################

@app.get("/pedidos/{pedido_id}/notificacoes")
async def listar_notificacoes_do_pedido(
    pedido_id: int,
    servico: ServicoPedidos = Depends(get_servico),
    cliente: ClienteNotificacoes = Depends(get_cliente_notificacoes),
):
    try:
        await run_in_threadpool(servico.obter, pedido_id)
    except PedidoNaoEncontrado as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        return await cliente.listar_por_pedido(pedido_id)
    except httpx.HTTPStatusError as e:
        raise HTTPException(
            status_code=502,
            detail=f"Erro ao obter notificações: o serviço respondeu {e.response.status_code}",
        )
    except httpx.RequestError as e:
        raise HTTPException(status_code=502, detail=f"Erro de conexão com o serviço de notificação: {str(e)}")
