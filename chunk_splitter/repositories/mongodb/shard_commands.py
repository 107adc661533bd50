"""
Admin commands issued directly to the shard that owns a chunk: datasize, splitVector, splitChunk.
Each call is a single request/response pair with no retry.
"""

from typing import Any

from pymongo.errors import PyMongoError

from chunk_splitter.repositories.mongodb.base import ShardCommandError, _translate_shard_error


async def run_shard_command(client: Any, command: dict[str, Any]) -> dict[str, Any]:
    """Run `command` on the shard's admin database. Raises ShardCommandError on failure or ok != 1."""
    try:
        response = await client.admin.command(command)
    except PyMongoError as e:
        raise _translate_shard_error(e, command) from e
    if response.get("ok") != 1:
        raise ShardCommandError(
            f"{next(iter(command))} returned ok={response.get('ok')!r}", command, response=response
        )
    return response


def datasize_command(
    namespace: str,
    key_pattern: dict[str, Any],
    range_min: dict[str, Any],
    range_max: dict[str, Any],
    estimate: bool,
    max_time_ms: int | None = None,
) -> dict[str, Any]:
    """datasize over [min, max). With estimate=True the shard multiplies average object size by count."""
    command: dict[str, Any] = {
        "datasize": namespace,
        "keyPattern": key_pattern,
        "min": range_min,
        "max": range_max,
        "estimate": estimate,
    }
    if max_time_ms is not None:
        command["maxTimeMS"] = max_time_ms
    return command


def split_vector_command(
    namespace: str,
    key_pattern: dict[str, Any],
    range_min: dict[str, Any],
    range_max: dict[str, Any],
    max_chunk_size_bytes: int,
    max_time_ms: int | None = None,
) -> dict[str, Any]:
    command: dict[str, Any] = {
        "splitVector": namespace,
        "keyPattern": key_pattern,
        "min": range_min,
        "max": range_max,
        "maxChunkSizeBytes": max_chunk_size_bytes,
    }
    if max_time_ms is not None:
        command["maxTimeMS"] = max_time_ms
    return command
