"""Split Executor: send splitChunk for one candidate and report ok or the shard's reason."""

from typing import Any

from chunk_splitter.config.logging import get_logger
from chunk_splitter.repositories.mongodb.base import ShardCommandError
from chunk_splitter.repositories.mongodb.shard_commands import run_shard_command
from chunk_splitter.resources.mongo.shards import ShardRegistry, UnknownShardError
from chunk_splitter.services.splitting.errors import SHARD_UNKNOWN, SPLIT_REJECTED
from chunk_splitter.services.splitting.models import Candidate, SplitOutcome, VersionToken

logger = get_logger(__name__)


def build_split_chunk_command(
    candidate: Candidate,
    version: VersionToken,
    config_server_address: str | None = None,
) -> dict[str, Any]:
    """
    splitChunk request. configdb is only included when an address is given; older shard
    versions require it, newer ones ignore or reject it.
    """
    chunk = candidate.chunk
    command: dict[str, Any] = {
        "splitChunk": chunk.namespace,
        "from": chunk.owner_node,
        "min": chunk.range_min,
        "max": chunk.range_max,
        "keyPattern": chunk.shard_key_pattern,
        "splitKeys": list(candidate.split_points),
        "shardVersion": version.as_shard_version(),
    }
    if config_server_address:
        command["configdb"] = config_server_address
    return command


async def execute_split(
    shards: ShardRegistry,
    candidate: Candidate,
    version: VersionToken,
    config_server_address: str | None = None,
) -> SplitOutcome:
    """Issue splitChunk. Rejections (stale fence, owner changed) come back as ok=False, never raise."""
    chunk = candidate.chunk
    command = build_split_chunk_command(candidate, version, config_server_address)
    try:
        client = shards.get(chunk.owner_node)
    except UnknownShardError as e:
        logger.error("Chunk split not sent", extra={"request": command, "reason": str(e)})
        return SplitOutcome(chunk=chunk, ok=False, reason=str(e), error_code=SHARD_UNKNOWN, request=command)

    try:
        response = await run_shard_command(client, command)
    except ShardCommandError as e:
        logger.error(
            "Chunk split failed",
            extra={"request": command, "response": e.response, "reason": str(e)},
        )
        return SplitOutcome(
            chunk=chunk,
            ok=False,
            reason=str(e),
            error_code=SPLIT_REJECTED,
            request=command,
            response=e.response,
        )

    logger.info(
        "Chunk split",
        extra={"chunk": chunk.identity(), "split_points": len(candidate.split_points)},
    )
    return SplitOutcome(chunk=chunk, ok=True, request=command, response=response)
