"""Template-based code generation.

Hidden design decisions:
- Templates are Jinja2 strings keyed by "<kind>_<language>[_<framework>]"
- The project's language and test framework select the template
- Suggested filenames follow each language's conventions
"""

import json
from typing import Any

import jinja2
from pydantic import BaseModel, Field

from .models import ProjectInfo

CODE_KINDS = ("function", "class", "struct", "test", "config")

_GO_FUNCTION = """\
// {{ description }}
func {{ name }}({{ params|join(", ") }}){% if returns %} ({{ returns|join(", ") }}){% endif %} {
\t// TODO: Implement {{ name }}
{%- if returns %}
\treturn{% for ret in returns %} {{ ret }}{}{% if not loop.last %},{% endif %}{% endfor %}
{%- endif %}
}
"""

_GO_STRUCT = """\
// {{ description }}
type {{ name }} struct {
{%- for field in fields %}
\t{{ field.name }} {{ field.type or "string" }}{% if field.tags %} `{% for key, value in field.tags.items() %}{{ key }}:"{{ value }}"{% if not loop.last %} {% endif %}{% endfor %}`{% endif %}{% if field.description %} // {{ field.description }}{% endif %}
{%- endfor %}
}

// New{{ name }} creates a new {{ name }}
func New{{ name }}() *{{ name }} {
\treturn &{{ name }}{}
}
"""

_GO_TEST = """\
package main

import (
\t"testing"
)

func Test{{ name }}(t *testing.T) {
\t// TODO: Implement test for {{ name }}
\tt.Skip("Test not implemented")
}
"""

_GO_TESTIFY = """\
package main

import (
\t"testing"

\t"github.com/stretchr/testify/assert"
)

func Test{{ name }}(t *testing.T) {
\t// TODO: Implement test for {{ name }}
\tassert.True(t, false, "Test not implemented")
}
"""

_JS_FUNCTION = """\
/**
 * {{ description }}
{%- for param in params %}
 * @param {*} {{ param }} - Parameter description
{%- endfor %}
{%- if returns %}
 * @returns {*} Return description
{%- endif %}
 */
function {{ name }}({{ params|join(", ") }}) {
  // TODO: Implement {{ name }}
{%- if returns %}
  return null;
{%- endif %}
}
"""

_TS_FUNCTION = """\
/**
 * {{ description }}
{%- for param in params %}
 * @param {{ param }} - Parameter description
{%- endfor %}
{%- if returns %}
 * @returns Return description
{%- endif %}
 */
function {{ name }}({% for param in params %}{{ param }}: any{% if not loop.last %}, {% endif %}{% endfor %}){% if returns %}: any{% endif %} {
  // TODO: Implement {{ name }}
{%- if returns %}
  return null;
{%- endif %}
}
"""

_JS_CLASS = """\
/**
 * {{ description }}
 */
class {{ name }} {
  constructor() {
{%- for field in fields %}
    this.{{ field.name }} = null;{% if field.description %} // {{ field.description }}{% endif %}
{%- endfor %}
  }
}
"""

_TS_CLASS = """\
/**
 * {{ description }}
 */
class {{ name }} {
{%- for field in fields %}
  {{ field.name }}: {{ field.type or "any" }};{% if field.description %} // {{ field.description }}{% endif %}
{%- endfor %}

  constructor() {
{%- for field in fields %}
    this.{{ field.name }} = null as any;
{%- endfor %}
  }
}
"""

_JS_TEST = """\
describe('{{ name }}', () => {
  test('should work correctly', () => {
    // TODO: Implement test for {{ name }}
    expect(true).toBe(false);
  });
});
"""

_PY_FUNCTION = '''\
def {{ name }}({{ params|join(", ") }}):
    """{{ description }}
{%- if params %}

    Args:
{%- for param in params %}
        {{ param }}: Parameter description
{%- endfor %}
{%- endif %}
{%- if returns %}

    Returns:
        Return description
{%- endif %}
    """
    # TODO: Implement {{ name }}
    {% if returns %}return None{% else %}pass{% endif %}
'''

_PY_CLASS = '''\
class {{ name }}:
    """{{ description }}"""

    def __init__(self):
{%- for field in fields %}
        self.{{ field.name }} = None{% if field.description %}  # {{ field.description }}{% endif %}
{%- else %}
        pass
{%- endfor %}
'''

_PY_UNITTEST = '''\
import unittest


class Test{{ name }}(unittest.TestCase):
    def test_{{ name|lower }}(self):
        """Test {{ name }}"""
        # TODO: Implement test for {{ name }}
        self.fail("Test not implemented")


if __name__ == "__main__":
    unittest.main()
'''

_PY_PYTEST = '''\
def test_{{ name|lower }}():
    """Test {{ name }}"""
    # TODO: Implement test for {{ name }}
    assert False, "Test not implemented"
'''

_RUST_FUNCTION = """\
/// {{ description }}
pub fn {{ name|lower }}({% for param in params %}{{ param }}: (){% if not loop.last %}, {% endif %}{% endfor %}){% if returns %} -> ({{ returns|join(", ") }}){% endif %} {
    todo!("implement {{ name }}")
}
"""

_RUST_STRUCT = """\
/// {{ description }}
#[derive(Debug, Default)]
pub struct {{ name }} {
{%- for field in fields %}
    {% if field.description %}/// {{ field.description }}
    {% endif %}pub {{ field.name }}: {{ field.type or "String" }},
{%- endfor %}
}
"""

_RUST_TEST = """\
#[cfg(test)]
mod tests {
    #[test]
    fn test_{{ name|lower }}() {
        // TODO: Implement test for {{ name }}
        unimplemented!();
    }
}
"""

_DOCKERFILE = """\
FROM {{ options.baseImage|default("alpine:latest") }}

WORKDIR /app
{% for command in options.installCommands|default([]) %}
RUN {{ command }}
{%- endfor %}

COPY . .
{% if options.buildCommand %}
RUN {{ options.buildCommand }}
{% endif %}
{%- if options.port %}
EXPOSE {{ options.port }}
{% endif %}
CMD {{ (options.startCommand|default("echo Hello World")).split()|tojson }}
"""

_GITIGNORE = """\
# Dependencies
{%- if project.language == "Go" %}
vendor/
{%- elif project.language in ("JavaScript", "TypeScript") %}
node_modules/
npm-debug.log*
yarn-debug.log*
yarn-error.log*
{%- elif project.language == "Python" %}
__pycache__/
*.py[cod]
*$py.class
.venv/
venv/
env/
{%- elif project.language == "Rust" %}
target/
{%- endif %}

# IDE
.vscode/
.idea/
*.swp
*.swo

# OS
.DS_Store
Thumbs.db

# Build outputs
dist/
build/

# Logs
*.log

# Environment variables
.env
.env.local

# Console Buddy history
CB.hist
"""

_MAKEFILE = """\
{%- if project.language == "Go" -%}
.PHONY: build test clean run install

build:
\tgo build -o bin/{{ project.name }} .

test:
\tgo test ./...

clean:
\trm -rf bin/

run: build
\t./bin/{{ project.name }}

install:
\tgo mod download
\tgo mod tidy
{% elif project.language in ("JavaScript", "TypeScript") -%}
.PHONY: install build test clean dev

install:
\t{{ project.package_manager }} install

build:
\t{{ project.package_manager }} run build

test:
\t{{ project.package_manager }} test

clean:
\trm -rf node_modules dist build

dev:
\t{{ project.package_manager }} run dev
{% elif project.language == "Python" -%}
.PHONY: install test clean dev

install:
\tpip install -r requirements.txt

test:
\t{% if project.test_framework == "pytest" %}pytest{% else %}python -m unittest discover{% endif %}

clean:
\tfind . -type f -name "*.pyc" -delete
\tfind . -type d -name "__pycache__" -delete

dev:
\tpython -m pip install -e .
{% elif project.language == "Rust" -%}
.PHONY: build test clean

build:
\tcargo build --release

test:
\tcargo test

clean:
\tcargo clean
{% endif -%}
"""

TEMPLATES = {
    "function_go": _GO_FUNCTION,
    "class_go": _GO_STRUCT,
    "test_go": _GO_TEST,
    "test_go_testify": _GO_TESTIFY,
    "function_javascript": _JS_FUNCTION,
    "function_typescript": _TS_FUNCTION,
    "class_javascript": _JS_CLASS,
    "class_typescript": _TS_CLASS,
    "test_javascript": _JS_TEST,
    "test_typescript": _JS_TEST,
    "function_python": _PY_FUNCTION,
    "class_python": _PY_CLASS,
    "test_python": _PY_UNITTEST,
    "test_python_pytest": _PY_PYTEST,
    "function_rust": _RUST_FUNCTION,
    "class_rust": _RUST_STRUCT,
    "test_rust": _RUST_TEST,
    "config_dockerfile": _DOCKERFILE,
    "config_gitignore": _GITIGNORE,
    "config_makefile": _MAKEFILE,
}

CONFIG_FILENAMES = {
    "dockerfile": "Dockerfile",
    "gitignore": ".gitignore",
    "makefile": "Makefile",
}

_FILE_EXTENSIONS = {"go": ".go", "javascript": ".js", "typescript": ".ts", "python": ".py", "rust": ".rs"}

_env = jinja2.Environment(
    loader=jinja2.DictLoader(TEMPLATES),
    keep_trailing_newline=True,
    autoescape=False,  # nosec B701 - generates source code, not HTML
)


class GeneratedCode(BaseModel):
    code: str
    suggested_filename: str


class FieldSpec(BaseModel):
    """A class/struct field in a generation spec."""

    name: str
    type: str = ""
    description: str = ""
    tags: dict[str, str] = Field(default_factory=dict)


def _parse_spec(spec: str | dict[str, Any] | None) -> dict[str, Any]:
    """Decode the optional JSON options; anything unusable means no options."""
    if not spec:
        return {}
    if isinstance(spec, dict):
        return spec
    try:
        parsed = json.loads(spec)
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


class CodeGenerator:
    """Generates code skeletons that match the project's language."""

    def __init__(self, project_info: ProjectInfo):
        self._info = project_info

    @property
    def _language(self) -> str:
        return self._info.language.lower()

    def render(self, template_name: str, **context: Any) -> str:
        """Render a named template with the project in context.

        Raises:
            ValueError: If no template exists under that name
        """
        try:
            template = _env.get_template(template_name)
        except jinja2.TemplateNotFound as e:
            raise ValueError(f"template {template_name} not found") from e
        return template.render(project=self._info, **context)

    def generate_function(self, name: str, description: str, params: list[str], returns: list[str]) -> str:
        return self.render(
            f"function_{self._language}",
            name=name, description=description, params=params, returns=returns,
        )

    def generate_class(self, name: str, description: str, fields: list[FieldSpec]) -> str:
        return self.render(f"class_{self._language}", name=name, description=description, fields=fields)

    def generate_test(self, name: str) -> str:
        template_name = f"test_{self._language}"
        framework = self._info.test_framework.lower()
        if framework and f"{template_name}_{framework}" in TEMPLATES:
            template_name = f"{template_name}_{framework}"
        return self.render(template_name, name=name)

    def generate_config(self, config_type: str, options: dict[str, Any]) -> str:
        return self.render(f"config_{config_type.lower()}", options=options)

    def suggested_filename(self, name: str) -> str:
        ext = _FILE_EXTENSIONS.get(self._language)
        if ext is None:
            return f"{name}.txt"
        if self._language in ("javascript", "typescript"):
            return f"{name}{ext}"
        return f"{name.lower()}{ext}"

    def suggested_test_filename(self, name: str) -> str:
        lowered = name.lower()
        if self._language == "go":
            return f"{lowered}_test.go"
        if self._language == "javascript":
            return f"{name}.test.js"
        if self._language == "typescript":
            return f"{name}.test.ts"
        if self._language == "python":
            return f"test_{lowered}.py"
        if self._language == "rust":
            return f"{lowered}_test.rs"
        return f"{name}_test.txt"

    def generate(
        self,
        kind: str,
        name: str,
        description: str,
        spec: str | dict[str, Any] | None = None,
    ) -> GeneratedCode:
        """Generate code of the given kind.

        Args:
            kind: function, class, struct, test or config
            name: Name of the item (for config: dockerfile, gitignore or makefile)
            description: What the code should do
            spec: Optional JSON options, e.g. {"params": ["a", "b"], "returns": ["int"]}
                for functions or {"fields": [{"name": "id", "type": "int"}]} for classes

        Returns:
            GeneratedCode with the code and a suggested filename

        Raises:
            ValueError: For an unsupported kind or a language without templates
        """
        options = _parse_spec(spec)
        kind = kind.lower()

        if kind == "function":
            code = self.generate_function(
                name, description,
                [str(p) for p in options.get("params", [])],
                [str(r) for r in options.get("returns", [])],
            )
            filename = self.suggested_filename(name)
        elif kind in ("class", "struct"):
            fields = [FieldSpec.model_validate(f) for f in options.get("fields", []) if isinstance(f, dict)]
            code = self.generate_class(name, description, fields)
            filename = self.suggested_filename(name)
        elif kind == "test":
            code = self.generate_test(name)
            filename = self.suggested_test_filename(name)
        elif kind == "config":
            code = self.generate_config(name, options)
            filename = CONFIG_FILENAMES.get(name.lower(), name)
        else:
            raise ValueError(f"unsupported code type: {kind}")

        return GeneratedCode(code=code, suggested_filename=filename)
