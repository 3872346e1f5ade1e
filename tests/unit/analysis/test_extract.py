from archivist.analysis.extract import extract_code


def test_fenced_block():
    assert extract_code("look:\n```js\nconst a = 1;\n```\nthanks") == "const a = 1;\n"


def test_fenced_tag_is_case_insensitive():
    assert extract_code("```JavaScript\nrun()\n```") == "run()\n"


def test_multiple_fenced_blocks_joined():
    assert extract_code("```a()```\nand\n```b()```") == "a()\n\nb()"


def test_inline_spans():
    assert extract_code("try `a()` then `b()`") == "a()\nb()"


def test_plain_message():
    assert extract_code("let x = 1;") == "let x = 1;"
