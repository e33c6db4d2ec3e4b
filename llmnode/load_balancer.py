"""Distribution of requests across several LLM nodes."""

from __future__ import annotations

import dataclasses
import enum
import logging
from dataclasses import dataclass, field
from typing import Optional

from llmnode.client import LlmClient, ModelInfo, NodeMetrics

logger = logging.getLogger(__name__)


class LoadBalancingStrategy(enum.Enum):
    """How a node is chosen among those that serve a model."""

    ROUND_ROBIN = "RoundRobin"
    LEAST_LOADED = "LeastLoaded"
    CAPABILITY_BASED = "CapabilityBased"
    LATENCY_BASED = "LatencyBased"


@dataclass
class LoadBalancerConfig:
    """Settings of a load balancer."""

    strategy: LoadBalancingStrategy = LoadBalancingStrategy.ROUND_ROBIN
    max_retries: int = 3
    selection_timeout_ms: int = 1000


@dataclass
class LoadBalancerNode:
    """A node known to the load balancer."""

    id: str
    client: LlmClient = field(repr=False)
    metrics: NodeMetrics = field(default_factory=NodeMetrics)
    active: bool = True

    def _copy(self) -> LoadBalancerNode:
        return dataclasses.replace(self, metrics=dataclasses.replace(self.metrics))


def capability_score(node: LoadBalancerNode, model_info: ModelInfo) -> float:
    """Score a node for a model; higher is better."""
    score = 1.0
    score += model_info.max_context_length / 10000.0
    score -= node.metrics.cpu_utilization * 0.5
    score -= node.metrics.memory_utilization * 0.5
    score -= node.metrics.active_requests * 0.1
    return score


class LoadBalancer:
    """Keeps a set of LLM nodes and selects one per request.

    Methods are coroutines meant to run on a single event loop; none of them
    suspends while it changes state, so no further locking is needed.
    """

    def __init__(self, config: Optional[LoadBalancerConfig] = None) -> None:
        self.config = config if config is not None else LoadBalancerConfig()
        self._nodes: dict[str, LoadBalancerNode] = {}
        self._round_robin_index = 0

    async def add_node(self, node_id: str, client: LlmClient) -> None:
        """Add a node, or replace the node with the same id."""
        self._nodes[node_id] = LoadBalancerNode(
            id=node_id, client=client, metrics=client.get_metrics(), active=True
        )
        logger.info("Added node to load balancer: %s", node_id)

    async def remove_node(self, node_id: str) -> bool:
        """Remove a node; tell whether it was present."""
        removed = self._nodes.pop(node_id, None) is not None
        if removed:
            logger.info("Removed node from load balancer: %s", node_id)
        else:
            logger.debug("Attempted to remove non-existent node: %s", node_id)
        return removed

    async def update_node_metrics(self, node_id: str, metrics: NodeMetrics) -> bool:
        """Store new metrics for a node; tell whether the node exists."""
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug("Attempted to update metrics for non-existent node: %s", node_id)
            return False
        node.metrics = dataclasses.replace(metrics)
        return True

    async def set_node_active(self, node_id: str, active: bool) -> bool:
        """Mark a node active or inactive; tell whether the node exists."""
        node = self._nodes.get(node_id)
        if node is None:
            logger.debug("Attempted to set active state for non-existent node: %s", node_id)
            return False
        node.active = active
        return True

    async def get_node(self, node_id: str) -> Optional[LoadBalancerNode]:
        """Return a copy of the node with this id, or None."""
        node = self._nodes.get(node_id)
        return None if node is None else node._copy()

    async def get_all_nodes(self) -> list[LoadBalancerNode]:
        """Return copies of all nodes."""
        return [node._copy() for node in self._nodes.values()]

    async def get_active_nodes(self) -> list[LoadBalancerNode]:
        """Return copies of the active nodes."""
        return [node._copy() for node in self._nodes.values() if node.active]

    async def select_node_for_model(self, model: str) -> Optional[LoadBalancerNode]:
        """Choose an active node that serves the model, or None if there is none."""
        active = await self.get_active_nodes()
        if not active:
            logger.debug("No active nodes available for selection")
            return None

        supporting = [node for node in active if node.client.supports_model(model)]
        if not supporting:
            logger.debug("No nodes support the requested model: %s", model)
            return None

        strategy = self.config.strategy
        if strategy is LoadBalancingStrategy.ROUND_ROBIN:
            return self._select_round_robin(supporting)
        if strategy is LoadBalancingStrategy.LEAST_LOADED:
            return min(supporting, key=lambda n: n.metrics.active_requests)
        if strategy is LoadBalancingStrategy.CAPABILITY_BASED:
            return self._select_capability_based(supporting, model)
        return min(supporting, key=lambda n: n.metrics.average_response_time_ms)

    def _select_round_robin(self, nodes: list[LoadBalancerNode]) -> LoadBalancerNode:
        selected = self._round_robin_index % len(nodes)
        self._round_robin_index = (self._round_robin_index + 1) % len(nodes)
        return nodes[selected]

    def _select_capability_based(
        self, nodes: list[LoadBalancerNode], model: str
    ) -> Optional[LoadBalancerNode]:
        scored = []
        for node in nodes:
            info = next((m for m in node.client.get_supported_models() if m.id == model), None)
            if info is not None:
                scored.append((node, capability_score(node, info)))
        if not scored:
            return None
        best, _ = max(scored, key=lambda pair: pair[1])
        return best