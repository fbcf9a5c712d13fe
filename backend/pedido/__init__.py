"""Serviço produtor de pedidos."""
