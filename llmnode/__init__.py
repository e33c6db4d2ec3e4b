"""Models, client interface, stream collection and load balancing for local LLM nodes."""

__version__ = "0.1.0"
__all__ = ["client", "load_balancer", "local_llm", "models", "streaming"]