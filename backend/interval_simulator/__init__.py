from .dispatch_generator import DispatchSimulator

__all__ = ['DispatchSimulator']
