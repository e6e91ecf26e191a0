"""Static answer templates, one per pattern. Used as reformat targets and fallback scaffolding."""

TABLE_TEMPLATE = """| Feature | Option A | Option B |
|---------|----------|----------|
| Speed   | Fast     | Slow     |
| Cost    | High     | Low      |
| Ease    | Simple   | Complex  |"""

DEFINITION_TEMPLATE = """[Term] is [one-sentence definition].

- Key characteristic one
- Key characteristic two
- Key characteristic three"""

LIST_TEMPLATE = """- First key point
- Second key point
- Third key point"""

PROCESS_TEMPLATE = """1. Install the required tooling
2. Configure the environment
3. Run the process
4. Verify the result"""

CODE_TEMPLATE = """```python
def example():
    return "result"
```"""

PROS_CONS_TEMPLATE = """## Advantages

- Benefit one
- Benefit two
- Benefit three

## Disadvantages

- Drawback one
- Drawback two
- Drawback three"""

DIAGRAM_TEMPLATE = """```mermaid
graph TD
    A[Start] --> B[Process]
    B --> C[Decision]
    C -->|Yes| D[Action]
    C -->|No| E[Alternative]
    D --> F[End]
    E --> F
```"""

TROUBLESHOOTING_TEMPLATE = """## Problem

[Describe the specific issue or error]

## Causes

- Potential cause 1
- Potential cause 2
- Potential cause 3

## Solutions

1. First solution step
2. Second solution step
3. Third solution step"""

BEST_PRACTICES_TEMPLATE = """- Use a consistent convention across the codebase
- Validate input at the boundary
- Document the decision and its trade-offs"""
