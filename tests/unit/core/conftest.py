"""Shared fixtures for core unit tests"""

import pytest
from markdown_it import MarkdownIt


SAMPLE_MD = """\
# Components

Props are passed as {{ page.title }} in the layout, which prose may mention.

```jsx
<View style={{ flex: 1 }}>
  <Text>{{label}}</Text>
</View>
```

Between blocks.

````
nested ``` looking line
````

```
const obj = {a: {b: 1}};
```

``` python title="demo.py"
print("{{x}}")
```
"""


@pytest.fixture(name="parser")
def parser_fixture():
    return MarkdownIt("commonmark")


@pytest.fixture(name="sample_md")
def sample_md_fixture():
    return SAMPLE_MD
