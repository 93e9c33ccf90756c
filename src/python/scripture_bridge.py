#!/usr/bin/env python3
"""
Scripture Lookup Bridge

JSON-based subprocess interface for a front end to resolve scripture
references without re-implementing any lookup rules.

Protocol: reads one JSON command from stdin, writes one JSON line to stdout.
Status and debug lines go to stderr.

    {"command": "resolve", "reference": "创1:1", "translation": "和合本"}
    {"command": "resolve_batch", "references": ["创1:1", "约翰3:16"]}
    {"command": "list_translations"}
    {"command": "check_dependencies"}

Data location and behaviour come from SCRIPTURE_* environment variables
(see ResolverSettings.from_env).
"""

import sys
import json
import traceback
from typing import Optional, Dict, Any

from scripture_loader import initialize_resolver
from scripture_model import ResolverSettings, ScriptureDataError, UnknownTranslationError
from scripture_resolver import ScriptureResolver


# ============================================================================
# OUTPUT
# ============================================================================

def emit_error(error: str):
    """Emit an error to stdout as JSON."""
    result = {
        "type": "error",
        "error": error,
    }
    print(json.dumps(result, ensure_ascii=False), flush=True)


def emit_result(data: Dict[str, Any]):
    """Emit the final result to stdout as JSON."""
    result = {
        "type": "result",
        **data
    }
    print(json.dumps(result, ensure_ascii=False), flush=True)


# ============================================================================
# LAZY RESOLVER (loaded on first lookup command)
# ============================================================================

_resolver: Optional[ScriptureResolver] = None


def get_resolver(settings: Optional[ResolverSettings] = None) -> ScriptureResolver:
    """Load data once and reuse the resolver. ConfigLoadError propagates."""
    global _resolver
    if _resolver is None:
        _resolver = initialize_resolver(settings)
    return _resolver


def set_resolver(resolver: Optional[ScriptureResolver]):
    """Install a preloaded resolver (or clear it)."""
    global _resolver
    _resolver = resolver


# ============================================================================
# COMMANDS
# ============================================================================

def check_dependencies() -> Dict[str, Any]:
    """Check if all required Python packages are installed."""
    deps: Dict[str, Any] = {
        'requests': False,
    }

    try:
        import requests
        deps['requests'] = True
        deps['requests_version'] = str(requests.__version__)
    except ImportError:
        pass

    return {
        'dependencies': deps,
        'all_installed': all(deps.get(k, False) for k in ['requests']),
    }


def handle_command(command: Dict[str, Any]) -> Dict[str, Any]:
    """
    Handle a command from the front end.

    Commands:
        - resolve: Resolve one reference
        - resolve_batch: Resolve several references against one translation
        - list_translations: Loaded translations and the default
        - check_dependencies: Check if all required packages are installed
    """
    cmd = command.get('command', '')

    if cmd == 'check_dependencies':
        return check_dependencies()

    elif cmd == 'list_translations':
        resolver = get_resolver()
        return {
            'translations': resolver.translations,
            'default': resolver.default_translation,
        }

    elif cmd == 'resolve':
        reference = command.get('reference')
        if reference is None:
            return {'error': 'reference is required'}

        resolver = get_resolver()
        try:
            return resolver.resolve(str(reference), command.get('translation')).to_dict()
        except UnknownTranslationError as e:
            return {'error': str(e)}

    elif cmd == 'resolve_batch':
        references = command.get('references')
        if not isinstance(references, list):
            return {'error': 'references must be a list'}

        resolver = get_resolver()
        translation = command.get('translation')
        try:
            results = [resolver.resolve(str(ref), translation).to_dict() for ref in references]
        except UnknownTranslationError as e:
            return {'error': str(e)}
        return {'results': results}

    else:
        return {'error': f'Unknown command: {cmd}'}


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def main():
    """
    Main entry point for subprocess mode.
    Reads a JSON command from stdin and writes a JSON response to stdout.
    """
    # Ensure proper stdout encoding for JSON output
    for stream in (sys.stdout, sys.stderr):
        if hasattr(stream, 'reconfigure'):
            stream.reconfigure(encoding='utf-8')  # type: ignore[union-attr]

    try:
        input_data = sys.stdin.read()
        if not input_data.strip():
            emit_error("No input provided")
            return 1

        command = json.loads(input_data)
    except json.JSONDecodeError as e:
        emit_error(f"Invalid JSON input: {e}")
        return 1

    if not isinstance(command, dict):
        emit_error("Command must be a JSON object")
        return 1

    try:
        result = handle_command(command)
    except ScriptureDataError as e:
        emit_error(f"配置加载失败：{e}")
        return 1
    except Exception as e:
        emit_error(f"Error processing command: {e}\n{traceback.format_exc()}")
        return 1

    emit_result(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
