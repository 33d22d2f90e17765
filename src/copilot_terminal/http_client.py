import httpx

USER_AGENT = "GithubCopilot/1.155.0"
EDITOR_VERSION = "vscode/1.80.1"
EDITOR_PLUGIN_VERSION = "copilot.vim/1.16.0"

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
    "User-Agent": USER_AGENT,
}


def create_http_client(timeout: float = 30.0) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout)

