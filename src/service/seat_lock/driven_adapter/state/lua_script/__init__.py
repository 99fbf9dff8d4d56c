"""Lua scripts for owner-checked seat lock operations"""

from pathlib import Path


def load_lua_script(*, script_name: str) -> str:
    script_path = Path(__file__).parent / f'{script_name}.lua'
    if not script_path.exists():
        raise FileNotFoundError(f'Lua script not found: {script_path}')
    return script_path.read_text(encoding='utf-8')


DELETE_IF_HOLDER_SCRIPT = load_lua_script(script_name='delete_if_holder')
REFRESH_IF_HOLDER_SCRIPT = load_lua_script(script_name='refresh_if_holder')
