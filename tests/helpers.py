"""
Shared helpers for building log lines and waiting on async conditions.
"""

import asyncio
from urllib.parse import urlencode


def dig_line(url="http://site.com/home/page", time="2024-01-01T00:00:00",
             refer="http://ref.com", ua="UA1"):
    """An nginx-style access log line carrying a dig request"""
    query = urlencode({"url": url, "time": time, "refer": refer, "ua": ua})
    return f'127.0.0.1 - - [01/Jan/2024:00:00:00 +0000] "GET /dig?{query} HTTP/1.1" 200 43'


async def wait_until(predicate, timeout: float = 3.0):
    """Poll ``predicate`` until it is true or fail after ``timeout`` seconds"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.01)
