# sim/hooks.py


class NoopHooks:
    def built(self, **_):
        pass

    def extended(self, **_):
        pass

    def shortened(self, **_):
        pass

    def advanced(self, **_):
        pass

    def query_miss(self, *_, **__):
        pass

    def error(self, *_, **__):
        pass
