"""
Tests for AI reply parsing (file intents)
"""

import re

from autoai.utils.ai_parser import (
    FileIntent, get_file_extension, infer_file_name, parse_ai_response,
)


class TestCreateIntents:
    """Create lines paired with code blocks"""

    def test_create_line_before_block(self):
        text = "Here you go.\n\nCreate file: src/utils/math.js\n```javascript\nexport const add = (a, b) => a + b\n```\n"
        parsed = parse_ai_response(text)
        assert len(parsed.intents) == 1
        intent = parsed.intents[0]
        assert intent.kind == 'create'
        assert intent.path == 'src/utils/math.js'
        assert intent.language == 'javascript'
        assert intent.code == 'export const add = (a, b) => a + b\n'
        assert intent.description == 'Create file: src/utils/math.js'
        assert intent.id.startswith('action_')
        assert parsed.content == text

    def test_create_line_after_block(self):
        text = "```css\nbody { margin: 0; }\n```\nCreate file: styles/reset.css\n"
        parsed = parse_ai_response(text)
        assert [(i.kind, i.path) for i in parsed.intents] == [('create', 'styles/reset.css')]

    def test_decorated_marker_line(self):
        text = "**Create file: `src/x.css`**\n```css\na {}\n```"
        parsed = parse_ai_response(text)
        assert parsed.intents[0].path == 'src/x.css'

    def test_nearest_create_line_wins(self):
        text = "Create file: a.js\nCreate file: b.js\n```js\nx\n```"
        parsed = parse_ai_response(text)
        assert [i.path for i in parsed.intents] == ['b.js']
        assert parsed.skipped == [{'line': 'Create file: a.js', 'reason': 'no code block for create'}]

    def test_two_files(self):
        text = (
            "Create file: index.html\n```html\n<h1>Hi</h1>\n```\n"
            "Create file: style.css\n```css\nh1 { color: red; }\n```\n"
        )
        parsed = parse_ai_response(text)
        assert [(i.path, i.language) for i in parsed.intents] == [('index.html', 'html'), ('style.css', 'css')]


class TestOperationIntents:
    """'File operation: <verb> <path>' lines"""

    def test_modify_claims_next_block(self):
        text = "File operation: modify src/App.vue\n```vue\n<template><div/></template>\n```"
        parsed = parse_ai_response(text)
        intent = parsed.intents[0]
        assert intent.kind == 'modify'
        assert intent.path == 'src/App.vue'
        assert intent.code == '<template><div/></template>\n'
        assert intent.description == 'modify src/App.vue'
        assert intent.id.startswith('file_')

    def test_update_and_edit_are_modify(self):
        text = ("File operation: update a.js\n```js\n1\n```\n"
                "File operation: edit b.js\n```js\n2\n```")
        parsed = parse_ai_response(text)
        assert [(i.kind, i.path) for i in parsed.intents] == [('modify', 'a.js'), ('modify', 'b.js')]

    def test_delete_needs_no_block(self):
        parsed = parse_ai_response("File operation: delete src/old.js\nDone.")
        assert [(i.kind, i.path, i.code) for i in parsed.intents] == [('delete', 'src/old.js', '')]

    def test_remove_is_delete(self):
        parsed = parse_ai_response("File operation: remove legacy.css")
        assert parsed.intents[0].kind == 'delete'

    def test_modify_without_block_is_skipped(self):
        text = "File operation: modify a.js\nCreate file: b.js\n```js\nx\n```"
        parsed = parse_ai_response(text)
        assert [(i.kind, i.path) for i in parsed.intents] == [('create', 'b.js')]
        assert parsed.skipped == [{'line': 'File operation: modify a.js', 'reason': 'no code block for modify'}]

    def test_unknown_verb_is_skipped(self):
        parsed = parse_ai_response("File operation: rename a.js b.js")
        assert parsed.intents == []
        assert parsed.skipped[0]['reason'] == 'unsupported operation: rename'

    def test_intents_follow_document_order(self):
        text = (
            "File operation: delete old.js\n"
            "Create file: new.js\n```js\nnew\n```\n"
            "File operation: modify main.js\n```js\nmain\n```\n"
        )
        parsed = parse_ai_response(text)
        assert [(i.kind, i.path) for i in parsed.intents] == [
            ('delete', 'old.js'), ('create', 'new.js'), ('modify', 'main.js'),
        ]


class TestChineseMarkers:
    """Chinese marker lines with full-width colons"""

    def test_create(self):
        parsed = parse_ai_response("创建文件：src/home.js\n```js\nhome\n```")
        assert parsed.intents[0].path == 'src/home.js'

    def test_modify_without_space(self):
        parsed = parse_ai_response("文件操作：修改src/App.vue\n```vue\n<template/>\n```")
        assert [(i.kind, i.path) for i in parsed.intents] == [('modify', 'src/App.vue')]

    def test_delete_with_space(self):
        parsed = parse_ai_response("文件操作: 删除 src/old.vue")
        assert [(i.kind, i.path) for i in parsed.intents] == [('delete', 'src/old.vue')]

    def test_modify_marker_stays_on_its_line(self):
        parsed = parse_ai_response("文件操作：\n```vue\n<template/>\n```")
        assert all('```' not in i.path for i in parsed.intents)
        assert [i.kind for i in parsed.intents] == ['create']


class TestMarkerLines:
    """A marker never reaches into the following line"""

    def test_create_without_path(self):
        parsed = parse_ai_response("Create file:\n```js\nconsole.log(1)\n```")
        assert len(parsed.intents) == 1
        assert '```' not in parsed.intents[0].path
        assert parsed.intents[0].path.endswith('.js')

    def test_crlf_line_endings(self):
        parsed = parse_ai_response("Create file: src/a.js\r\n```js\r\nx\r\n```")
        assert parsed.intents[0].path == 'src/a.js'


class TestUnnamedBlocks:
    """Blocks with no marker get an inferred name"""

    def test_marker_inside_block_is_ignored(self):
        parsed = parse_ai_response("```markdown\nCreate file: fake.js\n```")
        assert len(parsed.intents) == 1
        assert re.match(r'^ai_generated_\d+_0\.md$', parsed.intents[0].path)
        assert parsed.skipped == []

    def test_json_name_field(self):
        assert infer_file_name('json', '{"name": "demo-app", "version": "1.0.0"}', 0) == 'demo-app.json'
        assert infer_file_name('json', '{"version": "1.0.0"}', 0) == 'package.json'

    def test_vue_and_entry_points(self):
        assert infer_file_name('vue', '<template/>', 0) == 'App.vue'
        assert infer_file_name('javascript', "createApp(App).mount('#app')", 0) == 'main.js'
        assert infer_file_name('bash', 'npm install', 0) == 'run.sh'

    def test_generated_name(self):
        assert infer_file_name('python', 'print(1)', 2, now_ms=123) == 'ai_generated_123_2.py'
        assert infer_file_name('', 'plain', 0, now_ms=5) == 'ai_generated_5_0.txt'

    def test_extensions(self):
        assert get_file_extension('TypeScript') == 'ts'
        assert get_file_extension('rust') == 'rs'
        assert get_file_extension('brainfuck') == 'txt'
        assert get_file_extension(None) == 'txt'


class TestParsedResponse:
    """Action dicts and plain replies"""

    def test_plain_reply_has_no_intents(self):
        parsed = parse_ai_response("Vue components are reusable pieces of UI.")
        assert parsed.intents == []
        assert parsed.actions == []
        assert parsed.skipped == []

    def test_empty_reply(self):
        parsed = parse_ai_response(None)
        assert parsed.content == ''
        assert parsed.intents == []

    def test_action_shape(self):
        action = FileIntent(id='action_1_0', kind='create', path='a.js', language='js', code='x',
                            description='Create file: a.js').to_action()
        assert action['type'] == 'code_modification'
        assert action['operation'] == 'create'
        assert action['filePath'] == 'a.js'
        assert set(action) == {
            'id', 'type', 'operation', 'filePath', 'description', 'language', 'code', 'timestamp',
        }

    def test_operation_action_type(self):
        action = FileIntent(id='file_1_0', kind='delete', path='a.js').to_action()
        assert action['type'] == 'file_operation'
