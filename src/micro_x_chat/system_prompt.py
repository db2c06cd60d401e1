def build_system_prompt(instructions: str | None = None) -> str:
    prompt = """\
You are a helpful assistant chatting with a user in a terminal. \
Answer in plain text; the terminal does not render Markdown.

Be concise unless the user asks for detail."""

    if instructions:
        prompt += f"""

Additional instructions from the user:
{instructions}"""

    return prompt
