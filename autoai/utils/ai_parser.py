"""
AI Response Parser

FLOW OVERVIEW
- parse_ai_response(text)
  • Scans fenced code blocks and marker lines (English or Chinese, ':' or '：').
  • 'File operation: modify <path>' claims the next code block before the next marker line.
  • 'File operation: delete <path>' needs no code block.
  • Remaining blocks take the create line that announces them ('Create file: <path>' between
    the previous block and this one), else the first free create line after them.
  • Blocks still unnamed get an inferred file name.
  • Unknown verbs and orphan marker lines end up in `skipped`.
- Pure functions; applying intents is ai_service's job.
"""

import json
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

CODE_BLOCK_PATTERN = re.compile(r'```[ \t]*([\w+#.-]*)[^\n]*\n(.*?)```', re.DOTALL)
CREATE_PATTERN = re.compile(
    r'^[ \t>*_`-]*(?:Create file|创建文件)[ \t]*[:：][ \t]*(.+?)[ \t\r]*$', re.MULTILINE | re.IGNORECASE
)
OPERATION_PATTERN = re.compile(
    r'^[ \t>*_`-]*(?:File operation|文件操作)[ \t]*[:：][ \t]*(\S+)[ \t]*(.*?)[ \t\r]*$', re.MULTILINE | re.IGNORECASE
)

MODIFY_VERBS = {'modify', 'update', 'edit', '修改', '更新'}
DELETE_VERBS = {'delete', 'remove', '删除'}

LANGUAGE_EXTENSIONS = {
    'javascript': 'js',
    'js': 'js',
    'typescript': 'ts',
    'ts': 'ts',
    'python': 'py',
    'py': 'py',
    'java': 'java',
    'html': 'html',
    'css': 'css',
    'json': 'json',
    'xml': 'xml',
    'sql': 'sql',
    'php': 'php',
    'c': 'c',
    'cpp': 'cpp',
    'csharp': 'cs',
    'cs': 'cs',
    'go': 'go',
    'rust': 'rs',
    'ruby': 'rb',
    'rb': 'rb',
    'vue': 'vue',
    'jsx': 'jsx',
    'tsx': 'tsx',
    'kotlin': 'kt',
    'scss': 'scss',
    'bash': 'sh',
    'sh': 'sh',
    'markdown': 'md',
    'md': 'md',
}


@dataclass
class FileIntent:
    """A create / modify / delete instruction extracted from an AI reply"""
    id: str
    kind: str
    path: str
    language: str = 'text'
    code: str = ''
    description: str = ''
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_action(self) -> Dict[str, Any]:
        """Action dict stored in conversation context and returned to the client"""
        return {
            'id': self.id,
            'type': 'code_modification' if self.kind == 'create' else 'file_operation',
            'operation': self.kind,
            'filePath': self.path,
            'description': self.description,
            'language': self.language,
            'code': self.code,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass
class ParsedResponse:
    content: str
    intents: List[FileIntent] = field(default_factory=list)
    skipped: List[Dict[str, str]] = field(default_factory=list)

    @property
    def actions(self) -> List[Dict[str, Any]]:
        return [intent.to_action() for intent in self.intents]


@dataclass
class _Marker:
    kind: str
    path: str
    line: str
    start: int
    end: int
    used: bool = False


@dataclass
class _Block:
    language: str
    code: str
    start: int
    end: int
    claimed: bool = False


def get_file_extension(language: Optional[str]) -> str:
    return LANGUAGE_EXTENSIONS.get((language or '').lower(), 'txt')


def _clean_path(raw: str) -> str:
    return raw.strip().strip('`*"\'').strip()


def infer_file_name(language: str, code: str, index: int, now_ms: Optional[int] = None) -> str:
    """File name for a code block that no marker line names"""
    language = (language or '').lower()
    if language == 'json':
        try:
            data = json.loads(code)
        except ValueError:
            data = None
        if isinstance(data, dict) and isinstance(data.get('name'), str) and data['name'].strip():
            return f"{data['name'].strip()}.json"
        match = re.search(r'"name"\s*:\s*"([^"]+)"', code)
        return f'{match.group(1)}.json' if match else 'package.json'
    if language in ('javascript', 'js') and 'createApp' in code:
        return 'main.js'
    if language == 'vue':
        return 'App.vue'
    if language in ('bash', 'sh'):
        return 'run.sh'
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f'ai_generated_{now_ms}_{index}.{get_file_extension(language)}'


def _inside(blocks: List[_Block], position: int) -> bool:
    return any(block.start <= position < block.end for block in blocks)


def _collect(text: str):
    blocks = [
        _Block(language=(m.group(1) or 'text'), code=m.group(2), start=m.start(), end=m.end())
        for m in CODE_BLOCK_PATTERN.finditer(text)
    ]
    markers: List[_Marker] = []
    skipped: List[Dict[str, str]] = []

    for m in CREATE_PATTERN.finditer(text):
        if _inside(blocks, m.start()):
            continue
        path = _clean_path(m.group(1))
        if path:
            markers.append(_Marker('create', path, m.group(0).strip(), m.start(), m.end()))

    for m in OPERATION_PATTERN.finditer(text):
        if _inside(blocks, m.start()):
            continue
        verb = m.group(1).strip().lower()
        path = _clean_path(m.group(2))
        # '修改src/App.vue': Chinese verbs are often written without a space
        for cjk_verb in ('修改', '更新', '删除'):
            if verb.startswith(cjk_verb) and len(verb) > len(cjk_verb) and not path:
                verb, path = cjk_verb, _clean_path(m.group(1).strip()[len(cjk_verb):])
        if verb in MODIFY_VERBS and path:
            markers.append(_Marker('modify', path, m.group(0).strip(), m.start(), m.end()))
        elif verb in DELETE_VERBS and path:
            markers.append(_Marker('delete', path, m.group(0).strip(), m.start(), m.end()))
        else:
            skipped.append({'line': m.group(0).strip(), 'reason': f'unsupported operation: {verb}'})

    markers.sort(key=lambda marker: marker.start)
    return blocks, markers, skipped


def parse_ai_response(text: Optional[str]) -> ParsedResponse:
    """Extract file intents from an LLM reply; the reply text is returned untouched"""
    text = text or ''
    blocks, markers, skipped = _collect(text)
    now_ms = int(time.time() * 1000)
    # (document position, intent) so the applied order follows the reply
    found = []

    for i, marker in enumerate(markers):
        if marker.kind != 'modify':
            continue
        next_start = markers[i + 1].start if i + 1 < len(markers) else len(text)
        block = next(
            (b for b in blocks if not b.claimed and marker.end <= b.start < next_start), None
        )
        if block is None:
            skipped.append({'line': marker.line, 'reason': 'no code block for modify'})
            continue
        block.claimed = True
        marker.used = True
        found.append((marker.start, 'modify', marker.path, block.language, block.code))

    creates = [m for m in markers if m.kind == 'create']
    free_blocks = [b for b in blocks if not b.claimed]
    for index, block in enumerate(blocks):
        if block.claimed:
            continue
        position = free_blocks.index(block)
        prev_end = free_blocks[position - 1].end if position > 0 else 0
        next_start = free_blocks[position + 1].start if position + 1 < len(free_blocks) else len(text)

        announcing = [m for m in creates if not m.used and prev_end <= m.start < block.start]
        following = [m for m in creates if not m.used and block.end <= m.start < next_start]
        if announcing:
            marker = announcing[-1]
        elif following:
            marker = following[0]
        else:
            marker = None

        if marker is not None:
            marker.used = True
            path = marker.path
        else:
            path = infer_file_name(block.language, block.code, index, now_ms)
        block.claimed = True
        found.append((block.start, 'create', path, block.language, block.code))

    for marker in markers:
        if marker.kind == 'delete':
            marker.used = True
            found.append((marker.start, 'delete', marker.path, 'text', ''))
        elif marker.kind == 'create' and not marker.used:
            skipped.append({'line': marker.line, 'reason': 'no code block for create'})

    found.sort(key=lambda item: item[0])
    intents = []
    for index, (_, kind, path, language, code) in enumerate(found):
        description = f'Create file: {path}' if kind == 'create' else f'{kind} {path}'
        intents.append(FileIntent(
            id=f'{"action" if kind == "create" else "file"}_{now_ms}_{index}',
            kind=kind,
            path=path,
            language=language,
            code=code,
            description=description,
        ))
    return ParsedResponse(content=text, intents=intents, skipped=skipped)
