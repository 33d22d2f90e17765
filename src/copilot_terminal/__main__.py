import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from copilot_terminal.app_config import load_json_config, parse_app_config, resolve_runtime_env
from copilot_terminal.assistant import TerminalAssistant
from copilot_terminal.bootstrap import bootstrap_runtime
from copilot_terminal.errors import CopilotError


async def main() -> int:
    load_dotenv()

    env = resolve_runtime_env()
    app = parse_app_config(load_json_config(env.config_dir), env)
    runtime = await bootstrap_runtime(app)

    try:
        assistant = TerminalAssistant(runtime)
        try:
            await assistant.ensure_logged_in()
        except CopilotError as ex:
            logger.error(f"Error: {ex.message}")
            return 1

        print(f"Session started: {runtime.session_log.session.id}")
        if app.debug and runtime.log_descriptions:
            print(f"Logging: {', '.join(runtime.log_descriptions)}")
        print("Type a request, '!<command>' to run directly, '/help' for commands, 'exit' to quit.")
        print()

        await assistant.run_loop()
        return 0
    finally:
        await runtime.close()


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    run()
