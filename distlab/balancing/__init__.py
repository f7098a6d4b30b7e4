"""Load balancer, server-selection policies, task servers and a task client."""