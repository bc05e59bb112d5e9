from buildcast.compiler.options import CompilerOptions
from buildcast.core.entry import (
    DEFAULT_CLIENT_AGENT_PATH,
    DEFAULT_HOT_RUNTIME_PATH,
    EntryInjector,
)


def test_string_entry_becomes_prefixed_list() -> None:
    injector = EntryInjector(client_agent_path="agent", hot_runtime_path="hot")
    config = {"entry": "./src/index.js"}

    result = injector.inject(config)

    assert result is config
    assert config["entry"] == ["agent", "hot", "./src/index.js"]


def test_list_entry_keeps_original_order() -> None:
    injector = EntryInjector(client_agent_path="agent", hot_runtime_path="hot")
    config = {"entry": ["./a.js", "./b.js"]}

    injector.inject(config)

    assert config["entry"] == ["agent", "hot", "./a.js", "./b.js"]


def test_named_entries_each_receive_the_prefix() -> None:
    injector = EntryInjector(client_agent_path="agent", hot_runtime_path="hot")
    config = {"entry": {"app": "./app.js", "admin": ["./admin.js", "./extra.js"]}}

    injector.inject(config)

    assert config["entry"] == {
        "app": ["agent", "hot", "./app.js"],
        "admin": ["agent", "hot", "./admin.js", "./extra.js"],
    }


def test_injecting_twice_duplicates_the_prefix() -> None:
    injector = EntryInjector(client_agent_path="agent", hot_runtime_path="hot")
    config = {"entry": "./src/index.js"}

    injector.inject(config)
    injector.inject(config)

    assert config["entry"] == ["agent", "hot", "agent", "hot", "./src/index.js"]


def test_compiler_options_object_uses_default_client_modules() -> None:
    options = CompilerOptions(entry="./src/index.js")

    EntryInjector().inject(options)

    assert options.entry == [
        DEFAULT_CLIENT_AGENT_PATH,
        DEFAULT_HOT_RUNTIME_PATH,
        "./src/index.js",
    ]
    assert options.entry_chunks() == {"main": options.entry}
