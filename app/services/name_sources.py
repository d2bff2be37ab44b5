"""
Fuentes externas de nombres legibles para una address

- ENS: reverse resolution contra Ethereum mainnet vía JSON-RPC (eth_call)
- Basenames: API HTTP del resolver de Coinbase

Ambas son best-effort: devuelven None cuando no hay nombre y lanzan
NameSourceError cuando la fuente falla. El caché decide qué hacer.
"""

from typing import Any, Optional, Protocol

import httpx
from eth_hash.auto import keccak

# Selectores de funciones de ENS (primeros 4 bytes del keccak de la firma)
RESOLVER_SELECTOR = "0x0178b8bf"  # resolver(bytes32)
NAME_SELECTOR = "0x691f3431"      # name(bytes32)
ADDR_SELECTOR = "0x3b3b57de"      # addr(bytes32)

ZERO_ADDRESS = "0x" + "0" * 40


class NameSourceError(Exception):
    """Se lanza cuando una fuente de nombres no pudo responder"""
    pass


class NameSource(Protocol):
    name: str

    async def lookup(self, address: str) -> Optional[str]:
        ...


def namehash(name: str) -> bytes:
    """Algoritmo namehash de ENS (EIP-137)"""
    node = b"\x00" * 32
    if name:
        for label in reversed(name.split(".")):
            node = keccak(node + keccak(label.encode("utf-8")))
    return node


def _decode_address(result: str) -> str:
    """Un address ABI-encoded ocupa los últimos 20 bytes de la palabra"""
    raw = result[2:] if result.startswith("0x") else result
    if len(raw) < 64:
        return ZERO_ADDRESS
    return "0x" + raw[24:64].lower()


def _decode_string(result: str) -> Optional[str]:
    """Decodifica un string ABI: offset (32 bytes), largo (32 bytes), datos"""
    raw = bytes.fromhex(result[2:] if result.startswith("0x") else result)
    if len(raw) < 64:
        return None
    offset = int.from_bytes(raw[:32], "big")
    length = int.from_bytes(raw[offset:offset + 32], "big")
    data = raw[offset + 32:offset + 32 + length]
    if len(data) != length:
        raise NameSourceError("Malformed ABI string")
    return data.decode("utf-8", errors="replace") or None


class EnsNameSource:
    """
    Reverse resolution de ENS (address -> nombre)

    1. Busca el resolver del nodo <addr>.addr.reverse en el registry
    2. Le pide name(node) a ese resolver
    3. Verifica hacia adelante que el nombre apunte a la misma address
    """

    name = "ens"

    def __init__(
        self,
        rpc_url: str,
        registry_address: str,
        timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.rpc_url = rpc_url
        self.registry_address = registry_address
        self.timeout = timeout
        self.transport = transport

    async def _eth_call(self, client: httpx.AsyncClient, to: str, data: str) -> str:
        payload: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "eth_call",
            "params": [{"to": to, "data": data}, "latest"],
        }
        response = await client.post(self.rpc_url, json=payload)
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise NameSourceError(f"Unexpected RPC response: {body!r}")
        if "error" in body:
            raise NameSourceError(f"RPC error: {body['error']}")
        return body.get("result") or "0x"

    async def _resolver_for(self, client: httpx.AsyncClient, node: bytes) -> Optional[str]:
        result = await self._eth_call(
            client, self.registry_address, RESOLVER_SELECTOR + node.hex()
        )
        resolver = _decode_address(result)
        return None if resolver == ZERO_ADDRESS else resolver

    async def lookup(self, address: str) -> Optional[str]:
        reverse_node = namehash(f"{address[2:].lower()}.addr.reverse")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resolver = await self._resolver_for(client, reverse_node)
                if resolver is None:
                    return None

                ens_name = _decode_string(
                    await self._eth_call(client, resolver, NAME_SELECTOR + reverse_node.hex())
                )
                if not ens_name:
                    return None

                # Verificación forward: cualquiera puede setear un reverse record
                forward_node = namehash(ens_name)
                forward_resolver = await self._resolver_for(client, forward_node)
                if forward_resolver is None:
                    return None

                resolved = _decode_address(
                    await self._eth_call(client, forward_resolver, ADDR_SELECTOR + forward_node.hex())
                )
        except (httpx.HTTPError, ValueError) as e:
            raise NameSourceError(f"ENS lookup failed: {e}") from e

        return ens_name if resolved == address.lower() else None


class BasenameSource:
    """Basenames vía la API HTTP del resolver (GET {base}/{address})"""

    name = "basename"

    def __init__(
        self,
        api_url: str,
        timeout: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def lookup(self, address: str) -> Optional[str]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    f"{self.api_url}/{address}",
                    headers={"Accept": "application/json"}
                )

                if response.status_code == 404:
                    return None
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise NameSourceError(f"Basename lookup failed: {e}") from e

        if not isinstance(data, dict):
            return None
        return data.get("name") or None
