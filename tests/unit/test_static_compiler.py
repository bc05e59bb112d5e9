from pathlib import Path

import pytest

from buildcast.compiler import CompilerOptions, StaticCompiler
from buildcast.compiler.contracts import BuildResult
from buildcast.compiler.static import HASH_LENGTH
from buildcast.store import MemoryOutputStore


def _compiler(project: Path, **overrides) -> StaticCompiler:
    options = CompilerOptions(context=project, **overrides)
    compiler = StaticCompiler(options)
    compiler.output_store = MemoryOutputStore()
    return compiler


def test_compile_writes_bundle_and_html(sample_project: Path) -> None:
    compiler = _compiler(sample_project)

    result = compiler.compile()

    output = compiler.options.output_path
    store = compiler.output_store
    assert output == (sample_project / "dist").resolve().as_posix()
    assert not result.has_errors
    assert len(result.hash) == HASH_LENGTH
    assert sorted(result.assets) == [f"{output}/index.html", f"{output}/main.js"]
    bundle = store.read_file(f"{output}/main.js").decode("utf-8")
    assert 'console.log("hello");' in bundle
    html = store.read_file(f"{output}/index.html").decode("utf-8")
    assert '<script src="/main.js"></script></body>' in html


def test_hash_changes_only_with_content(sample_project: Path) -> None:
    compiler = _compiler(sample_project)

    first = compiler.compile().hash
    again = compiler.compile().hash
    (sample_project / "src" / "index.js").write_text("console.log(2);\n", encoding="utf-8")
    changed = compiler.compile().hash

    assert first == again
    assert changed != first


def test_missing_modules_are_reported_as_errors(sample_project: Path) -> None:
    compiler = _compiler(sample_project, entry=["./src/missing.js", "./src/index.js"])

    result = compiler.compile()

    assert result.has_errors
    assert "./src/missing.js" in result.errors[0]
    assert result.assets


def test_named_entries_need_name_placeholder(sample_project: Path) -> None:
    compiler = _compiler(
        sample_project,
        entry={"app": "./src/index.js", "admin": "./src/index.js"},
        output={"filename": "[name].js"},
        html_template=None,
    )

    result = compiler.compile()

    output = compiler.options.output_path
    assert sorted(result.assets) == [f"{output}/admin.js", f"{output}/app.js"]


@pytest.mark.asyncio
async def test_run_fires_done_hook(sample_project: Path) -> None:
    compiler = _compiler(sample_project)
    seen: list[BuildResult] = []
    compiler.hooks.done.tap("test", seen.append)

    result = await compiler.run()

    assert seen == [result]


@pytest.mark.asyncio
async def test_watch_requires_existing_context(tmp_path: Path) -> None:
    compiler = _compiler(tmp_path / "missing")

    with pytest.raises(FileNotFoundError):
        await compiler.watch({})
    assert not compiler.watching
