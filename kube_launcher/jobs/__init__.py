from kube_launcher.jobs.hook import KubernetesJob

__all__ = ["KubernetesJob"]
