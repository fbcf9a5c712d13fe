import json
import os
import threading
from typing import Any, Callable, List, TypeVar

from .logs import configurar_logs

logger = configurar_logs("comum.armazenamento")

T = TypeVar("T")


class ArquivoJson:
    """Lista de registros persistida num arquivo JSON.

    Leituras e escritas passam pelo mesmo lock; ``alterar`` faz
    leitura-modificação-escrita atômica em relação às outras threads do
    processo.
    """

    def __init__(self, caminho: str):
        self.caminho = caminho
        self._lock = threading.RLock()

    def _ler(self) -> List[dict]:
        if not os.path.exists(self.caminho):
            self._salvar([])
            logger.info("Arquivo %s criado vazio.", self.caminho)
            return []
        with open(self.caminho, 'r', encoding='utf-8') as file:
            try:
                registros = json.load(file)
            except json.JSONDecodeError:
                registros = None
        if not isinstance(registros, list):
            copia = self._separar_corrompido()
            logger.error(
                "Conteúdo inválido no arquivo %s (esperada uma lista JSON); movido para %s. Usando lista vazia.",
                self.caminho, copia,
            )
            return []
        return registros

    def _separar_corrompido(self) -> str:
        destino = f"{self.caminho}.corrompido"
        n = 1
        while os.path.exists(destino):
            destino = f"{self.caminho}.corrompido.{n}"
            n += 1
        os.replace(self.caminho, destino)
        return destino

    def _salvar(self, registros: List[dict]):
        diretorio = os.path.dirname(os.path.abspath(self.caminho))
        os.makedirs(diretorio, exist_ok=True)
        temporario = f"{self.caminho}.tmp"
        with open(temporario, 'w', encoding='utf-8') as file:
            json.dump(registros, file, indent=4, ensure_ascii=False)
        os.replace(temporario, self.caminho)

    def ler(self) -> List[dict]:
        with self._lock:
            return self._ler()

    def alterar(self, funcao: Callable[[List[dict]], T]) -> T:
        with self._lock:
            registros = self._ler()
            resultado = funcao(registros)
            self._salvar(registros)
            return resultado


def proximo_id(registros: List[dict]) -> int:
    return max((r["id"] for r in registros), default=0) + 1


def indice_por_id(registros: List[dict], registro_id: Any) -> int:
    for i, registro in enumerate(registros):
        if registro.get("id") == registro_id:
            return i
    return -1
