import pytest
from click.testing import CliRunner

SAMPLE_MARKDOWN = """# Main Title

Some intro paragraph.

## API

API description paragraph.

| Method | Path | Description |
|--------|------|-------------|
| GET | /users | List users |
| POST | /users | Create user |

### Authentication

Auth details here.

```javascript
const token = getToken();
```

### Rate Limiting

Rate limit info.

| Limit | Window |
|-------|--------|
| 100 | 1 hour |

## Settings

Settings description.

- Option A
- Option B
- Option C

### Advanced Settings

Advanced info.

1. First step
2. Second step
3. Third step

## FAQ

> This is a blockquote.

---

```python
print("hello")
```

Some final paragraph.
"""


@pytest.fixture()
def cli_runner() -> CliRunner:
    """Provides a reusable Click CLI runner."""
    return CliRunner()


@pytest.fixture()
def sample_markdown() -> str:
    """A document exercising every block kind."""
    return SAMPLE_MARKDOWN
