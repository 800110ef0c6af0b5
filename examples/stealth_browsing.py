"""
Stealth Browsing Example

Hide automation markers, block heavy resources and keep cookies between runs.
"""
import asyncio
import os

import plugwright


async def main():
    plugwright.avoid_detection()
    blocker = plugwright.block_resources("image", "media", "font")
    plugwright.disable_dialogs(log_messages=True)
    plugwright.manage_cookies("cookies.json", profile="demo")
    solver = plugwright.solve_recaptchas(os.getenv("WIT_AI_TOKEN"))

    context = await plugwright.launch(headless=False)

    try:
        page = await context.new_page()
        await page.goto("https://www.google.com/recaptcha/api2/demo")

        if await solver.has_captcha(page):
            solved = await solver.solve_recaptcha(page)
            print(f"reCAPTCHA solved: {solved}")

        # Stop blocking for the rest of the session
        await blocker.stop()
        await page.goto("https://bot.sannysoft.com")
        await page.screenshot(path="sannysoft.png")

    finally:
        await plugwright.get_session().close()


if __name__ == "__main__":
    asyncio.run(main())
