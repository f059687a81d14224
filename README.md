# blockmark

blockmark is a Markdown parsing library. It turns Markdown into HTML, splits
the document into blocks such as headings, paragraphs, lists, code blocks and
quotes, and tells you which blocks changed between one version of a document
and the next. It also provides aiohttp route handlers and a WebSocket hub that
expose this parsing to clients.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Parsing

```python
from blockmark.parser import MarkdownParser, detect_notion_syntax

parser = MarkdownParser()
result = parser.parse("# Hello\n\nSome text")
print(result.html)
for block in result.blocks.values():
    print(block.id, block.type, block.content, block.position.start, block.position.end)

detect_notion_syntax("- [ ] task")   # "checkbox"
detect_notion_syntax("1. item")      # "ordered_list"
```

`MarkdownParser.parse` returns a `ParseResponse` (from `blockmark.models`)
with the full HTML, the blocks keyed by an 8-character id, and
`success=True`. Empty content gives empty HTML and no blocks. Rendering uses
hard line breaks, XHTML-style tags, raw HTML, tables, strikethrough, task-list
checkboxes and heading ids. Every model has a `to_dict()` that gives the JSON
shape used over the wire.

## Changes between versions

```python
from blockmark.incremental import IncrementalParser
from blockmark.diff import LineDiffer

incremental = IncrementalParser()
first = incremental.parse_with_diff("# Title")
second = incremental.parse_with_diff("# New title\n\nMore")
for change in second.changes:
    print(change.type, change.block_id)   # added / modified / removed

block = incremental.parse_line("## Section", 3)
print(block.type, block.html)             # h2 <h2 id="section">Section</h2>

for change in LineDiffer().compute_line_diff("a\nb", "a\nc"):
    print(change.type, change.line_num, change.content)
```

`parse_line` returns `None` for a blank line.

## HTTP routes and WebSocket hub

`blockmark.api.setup_routes(app)` adds these routes to an
`aiohttp.web.Application`:

| Method | Path                          | Purpose                                           |
|--------|-------------------------------|---------------------------------------------------|
| POST   | `/api/parse`                  | Parse `{"content": ..., "format": "html"\|"ast"}` |
| POST   | `/api/parse-incremental`      | Parse `{"content": ..., "blockId": ...}`          |
| GET    | `/api/syntax-check/{syntax}`  | Classify one line, for example `# Title` as `h1`  |

A missing or empty `content`, or a body that is not valid JSON, gets a 400
reply with `success: false` and an `error` text.

`blockmark.hub.Hub` keeps track of WebSocket clients, and
`blockmark.hub.handle_websocket(hub, request)` serves one connection. A
client sends JSON objects with a `type` field:

- `parse`: `content` is required. The reply is a `parsed` message.
- `parse_incremental`: `content` is required. The reply is a
  `parsed_incremental` message. If `documentId` is given, every client
  subscribed to that document also receives the reply.
- `subscribe` and `unsubscribe`: `documentId` is required.

A failed request is answered with a message of type `error`, `success: false`
and an `error` text. Every new connection first receives a `connected`
message.

Putting them together:

```python
from aiohttp import web

from blockmark.api import setup_routes
from blockmark.hub import Hub, handle_websocket

app = web.Application()
setup_routes(app)
hub = Hub()

async def websocket(request):
    return await handle_websocket(hub, request)

app.router.add_get("/ws", websocket)
web.run_app(app, port=8080)
```

## Configuration

```python
from blockmark.config import default_config, load_config

config = load_config("configs/config.json")   # defaults if the file is missing
config.save("my-config.json")
```

A missing file gives the defaults; malformed JSON or a field of the wrong
type raises `ValueError`.

## What the package does not do

There is no command that starts a server and no ready-made application: you
assemble the aiohttp application yourself as shown above. The package has no
health-check endpoint and no CORS handling, and the values in `Config` are
not applied to the routes or the hub by anything in the package.