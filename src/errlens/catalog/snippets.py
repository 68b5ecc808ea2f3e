"""Snippet catalog, explanation styles and model ids."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from errlens.errors import SnippetNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snippet:
    """A failing code sample together with the traceback Python prints for it."""

    id: str
    name: str
    code: str
    standard_error: str

    @property
    def error_type(self) -> str:
        """Exception class name from the last traceback line (e.g. 'KeyError')."""
        last_line = self.standard_error.strip().splitlines()[-1]
        return last_line.split(":", 1)[0].strip()


class ExplanationStyle(str, Enum):
    """How an improved error message should be phrased.

    PRAGMATIC explains what to do about the error; CONTINGENT explains the
    error in terms of this particular program's values and control flow.
    """

    PRAGMATIC = "pragmatic"
    CONTINGENT = "contingent"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "ExplanationStyle":
        """Case-insensitive lookup by value; raises ValueError if unknown."""
        return cls(value.strip().lower())


MODELS: tuple[str, ...] = (
    "llama3.2:latest",
    "codellama:latest",
    "mistral:latest",
    "phi3:latest",
    "qwen2:latest",
)

DEFAULT_MODEL = MODELS[0]


SNIPPETS: tuple[Snippet, ...] = (
    Snippet(
        id="snippet-1",
        name="list_index.py",
        code="""def get_item(items, index):
    return items[index]

my_list = [1, 2, 3]
result = get_item(my_list, 5)
print(result)""",
        standard_error="""Traceback (most recent call last):
  File "list_index.py", line 5, in <module>
    result = get_item(my_list, 5)
  File "list_index.py", line 2, in get_item
    return items[index]
IndexError: list index out of range""",
    ),
    Snippet(
        id="snippet-2",
        name="division_zero.py",
        code="""def calculate_average(numbers):
    total = sum(numbers)
    count = len(numbers)
    return total / count

data = []
average = calculate_average(data)
print(f"Average: {average}")""",
        standard_error="""Traceback (most recent call last):
  File "division_zero.py", line 7, in <module>
    average = calculate_average(data)
  File "division_zero.py", line 4, in calculate_average
    return total / count
ZeroDivisionError: division by zero""",
    ),
    Snippet(
        id="snippet-3",
        name="key_error.py",
        code="""user_data = {
    "name": "Alice",
    "age": 30,
    "email": "alice@example.com"
}

def get_user_info(data, key):
    return data[key]

phone = get_user_info(user_data, "phone")
print(f"Phone: {phone}")""",
        standard_error="""Traceback (most recent call last):
  File "key_error.py", line 10, in <module>
    phone = get_user_info(user_data, "phone")
  File "key_error.py", line 7, in get_user_info
    return data[key]
KeyError: 'phone'""",
    ),
    Snippet(
        id="snippet-4",
        name="type_error.py",
        code="""def concatenate_strings(str1, str2):
    return str1 + str2

text = "Hello"
number = 42
result = concatenate_strings(text, number)
print(result)""",
        standard_error="""Traceback (most recent call last):
  File "type_error.py", line 6, in <module>
    result = concatenate_strings(text, number)
  File "type_error.py", line 2, in concatenate_strings
    return str1 + str2
TypeError: can only concatenate str (not "int") to str""",
    ),
)


class SnippetCatalog:
    """Read-only, ordered collection of snippets fixed at construction."""

    def __init__(self, snippets: Iterable[Snippet] = SNIPPETS):
        self._snippets: tuple[Snippet, ...] = tuple(snippets)
        if not self._snippets:
            raise ValueError("SnippetCatalog needs at least one snippet")

        self._by_id: dict[str, Snippet] = {}
        for snippet in self._snippets:
            if snippet.id in self._by_id:
                raise ValueError(f"Duplicate snippet id '{snippet.id}'")
            self._by_id[snippet.id] = snippet

    def list(self) -> list[Snippet]:
        return list(self._snippets)

    def get(self, snippet_id: str) -> Snippet:
        """
        Look up a snippet by id.

        Raises:
            SnippetNotFound: Unknown id (a programming error, not user input)
        """
        try:
            return self._by_id[snippet_id]
        except KeyError:
            raise SnippetNotFound(snippet_id) from None

    def find(self, snippet_id: str) -> Optional[Snippet]:
        """Defensive lookup: None instead of raising."""
        snippet = self._by_id.get(snippet_id)
        if snippet is None:
            logger.warning("Requested unknown snippet id %r", snippet_id)
        return snippet

    def first(self) -> Snippet:
        return self._snippets[0]

    def __len__(self) -> int:
        return len(self._snippets)

    def __contains__(self, snippet_id: object) -> bool:
        return snippet_id in self._by_id
