"""MapReduce tasks, intermediate files, workers and the master that runs a job."""