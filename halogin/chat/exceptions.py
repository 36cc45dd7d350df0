from halogin.realtime.rpc import RpcError


class InvalidContractTransition(RpcError):
    code = "invalid_contract_transition"
    default_message = "This contract cannot move to the requested status"
