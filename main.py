"""
query-llm - Reason-then-respond chat assistant

Usage: python main.py

Commands: /review, /clear, /exit
"""

import asyncio
import sys

from query_llm.core.codec import unjson
from query_llm.core.pipeline import QueryPipeline
from query_llm.core.session import ConversationSession, simplify
from query_llm.llms.errors import TransportError
from query_llm.llms.http_client import CompletionClient
from query_llm.utils.config import get_config
from query_llm.utils.logger import get_logger
from query_llm.utils.scenario import ARROW, CYAN, GRAY, GREEN, MAGENTA, NORMAL, YELLOW

logger = get_logger(__name__)
config = get_config()


def print_banner():
    print(f"Using LLM at {config.LLM_API_BASE_URL} (model: {GREEN}{config.LLM_CHAT_MODEL}{NORMAL}).")
    mode = "zero-shot reply" if config.LLM_ZERO_SHOT else "reason -> respond"
    print(f"Pipeline: {mode}. Commands: /review, /clear, /exit\n")


def review(stages):
    """Print the stages of a turn, mostly for troubleshooting."""
    print()
    print(f"{MAGENTA}Pipeline review {NORMAL}")
    print("---------------")
    for index, stage in enumerate(stages, 1):
        print(f"{GREEN}{ARROW} Stage #{index} {YELLOW}{stage.name} {GRAY}[{stage.duration} ms]{NORMAL}")
        for key, value in stage.fields.items():
            print(f"{GRAY}{key}: {NORMAL}{value}")
    print()


class AnswerPrinter:
    """Writes streamed fragments to stdout; in JSON mode only the "answer" value."""

    def __init__(self, json_mode: bool):
        self.json_mode = json_mode
        self.received = ""
        self.printed = ""

    def __call__(self, fragment: str) -> None:
        if not self.json_mode:
            sys.stdout.write(fragment)
            sys.stdout.flush()
            return
        self.received += fragment
        answer = unjson(self.received).get("answer")
        if isinstance(answer, str) and len(answer) > len(self.printed):
            sys.stdout.write(answer[len(self.printed):])
            sys.stdout.flush()
            self.printed = answer


def show_search(stage: str, fields: dict) -> None:
    if stage == "Reason" and fields.get("keyphrases"):
        print(f"{GRAY}{ARROW} Searching for {fields['keyphrases']}...{NORMAL}")


def run_interactive_chat():
    try:
        config.validate()
    except ValueError as e:
        print(f"\nInvalid configuration: {e}")
        sys.exit(1)

    print_banner()

    llm = CompletionClient(config)
    session = ConversationSession()
    pipeline = QueryPipeline(llm_client=llm, session=session, config=config)

    while True:
        try:
            inquiry = input(f"{YELLOW}>> {CYAN}").strip()
            sys.stdout.write(NORMAL)

            if not inquiry:
                continue

            if inquiry.lower() in ['/exit', '/quit']:
                print("\nGoodbye!\n")
                break

            elif inquiry.lower() in ['/review', '!review']:
                last = session.last_turn
                if not last:
                    print("Nothing to review yet!\n")
                else:
                    review(simplify(last.stages))
                continue

            elif inquiry.lower() == '/clear':
                session.clear()
                print("\nStarting new conversation...\n")
                continue

            printer = AnswerPrinter(config.LLM_JSON_SCHEMA)
            asyncio.run(pipeline.process_and_record(inquiry, stream=printer, on_stage=show_search))
            print("\n")

        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye!\n")
            break

        except TransportError as e:
            logger.error(f"Error during chat: {e}", exc_info=True)
            print(f"\nError: {e}\n")
            print("You can continue chatting or type /exit to quit.\n")


if __name__ == "__main__":
    run_interactive_chat()
