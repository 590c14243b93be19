from aiohttp import web


async def handle_internal_alive(request: web.Request):
    return web.Response(status=200)
