"""
Function App registration tests.
"""

import azure.functions as func


class TestFunctionApp:

    def test_all_functions_registered(self):
        import function_app

        assert isinstance(function_app.app, func.FunctionApp)
        names = {fn.get_function_name() for fn in function_app.app.get_functions()}
        assert names == {
            "create_bridge_msauth_async",
            "run_status",
            "create_bridge_msauth_worker",
            "create_bridge_msauth",
            "create_bridge",
            "create_bridge_workspace",
            "msauth_preflight",
            "landing",
        }

    def test_queue_name_default(self):
        import function_app

        assert function_app.RUN_QUEUE_NAME == "create-bridge-runs"
