class AsyncBaseJob(object):
    """
    Template for a job with setup, body and teardown.
    `_end` runs on every exit path, including when `_start` fails part way.
    """

    async def run(self):
        try:
            await self._start()
            return await self._export()
        finally:
            await self._end()

    async def _start(self):
        pass

    async def _export(self):
        pass

    async def _end(self):
        pass
