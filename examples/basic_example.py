#!/usr/bin/env python3
"""
Example script demonstrating the usage of getoptx.

It compiles one optstring, matches a few argument vectors against it and
prints both the resolved options and the output line a shell script would
``eval``.
"""

from getoptx import compile_optstring, match

OPTSTRING = "v|verbose!,o|output:,I|include:*,|dry-run,j|jobs::"


def main() -> None:
    """Main function demonstrating the matcher."""
    table = compile_optstring(OPTSTRING)

    print("Declared options:")
    for spec in table:
        quantifier = f" {spec.quantifier.value}" if spec.quantifier else ""
        print(f"  {spec.display:<12} {spec.kind.value}{quantifier}")
    print()

    samples = [
        ["-vo", "out.txt", "input.c"],
        ["--no-verb", "--include", "src", "lib", "--dry", "main.c"],
        ["-j", "--output=my file.txt", "--", "-not-an-option"],
        ["-x", "--output"],
    ]
    for args in samples:
        result = match(table, args, name="example")
        print(f"args:   {args}")
        print(f"line:   {result.render()}")
        for option in result.options:
            print(f"  {option.display} = {option.value!r}")
        if result.has_errors:
            print("  (contains -? markers)")
        print()


if __name__ == "__main__":
    main()
