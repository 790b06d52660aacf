"""query-llm: reason-then-respond conversational agent over chat and generate LLM APIs."""

__version__ = "0.1.0"
