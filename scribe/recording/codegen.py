"""Playwright TypeScript code generation for recorded actions."""

from .models import RecordedAction, RecordedActionType

IMPORT_LINE = "import { test, expect } from '@playwright/test';"


def escape_string(value: str | None) -> str:
    """Escape a value for a single-quoted TypeScript string."""
    if value is None:
        return ""
    return value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")


def action_statement(action: RecordedAction) -> str:
    """One Playwright statement for an action."""
    selector = escape_string(action.selector)
    value = escape_string(action.value)

    if action.type == RecordedActionType.NAVIGATE:
        return f"  await page.goto('{value}');"
    elif action.type == RecordedActionType.CLICK:
        return f"  await page.click('{selector}');"
    elif action.type == RecordedActionType.FILL:
        return f"  await page.fill('{selector}', '{value}');"
    elif action.type == RecordedActionType.WAIT:
        return f"  await page.waitForSelector('{selector}');"
    elif action.type == RecordedActionType.ASSERT:
        return f"  await expect(page.locator('{selector}')).toBeVisible();"
    return f"  // Unknown action: {action.type}"


def generate_playwright_code(test_name: str, actions: list[RecordedAction]) -> str:
    """Generate a Playwright test with one statement per action, in order."""
    lines = [
        IMPORT_LINE,
        "",
        f"test('{escape_string(test_name)}', async ({{ page }}) => {{",
    ]

    for index, action in enumerate(actions):
        lines.append(f"  // Step {index + 1}: {action.description}")
        lines.append(action_statement(action))
        if index < len(actions) - 1:
            lines.append("")

    lines.append("});")
    return "\n".join(lines)


def actions_to_steps(actions: list[RecordedAction]) -> list[dict]:
    """Convert recorded actions to test step dictionaries."""
    return [
        {
            "step_order": index + 1,
            "action": action.type.value,
            "selector": action.selector or "",
            "value": action.value or "",
            "description": action.description,
        }
        for index, action in enumerate(actions)
    ]


def fallback_template(test_name: str, start_url: str) -> str:
    """Editable template shown when no code was captured."""
    return f"""{IMPORT_LINE}

test('{escape_string(test_name)}', async ({{ page }}) => {{
  await page.goto('{escape_string(start_url)}');

  // Your recorded actions will appear here
  // The generated code is available in your clipboard or terminal output
  // Please paste it here and edit as needed

  // Example assertions:
  // await expect(page).toHaveTitle(/Expected Title/);
  // await expect(page.locator('selector')).toBeVisible();
}});"""
